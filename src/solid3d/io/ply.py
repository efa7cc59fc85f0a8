"""PLY import and export for polyhedral meshes.

Only the ASCII flavour of the format is supported::

    ply
    format ascii 1.0
    comment anything
    element vertex 8
    property double x
    property double y
    property double z
    element face 6
    property list uchar int vertex_indices
    end_header
    0.0 0.0 0.0
    ...
    4 0 3 2 1
    ...

Vertex properties other than ``x``, ``y`` and ``z`` are read and ignored,
as are elements other than ``vertex`` and ``face``.  Faces list their
vertices counterclockwise seen from outside the solid.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence, TextIO, Tuple

from solid3d.errors import PlyFormatError
from solid3d.polyhedrons import PolyhedronsSet
from solid3d.settings import GEOMETRY_EPSILON
from solid3d.vector import Vector3D

logger = logging.getLogger(__name__)

_SCALAR_TYPES = {
    'char', 'uchar', 'short', 'ushort', 'int', 'uint', 'float', 'double',
    'int8', 'uint8', 'int16', 'uint16', 'int32', 'uint32', 'float32', 'float64',
}
_FACE_LISTS = ('vertex_indices', 'vertex_index')


class PlyMesh:
    """Vertices and faces read from, or written to, a PLY stream."""

    def __init__(self, vertices: Sequence[Vector3D], faces: Sequence[Sequence[int]]):
        self.vertices: List[Vector3D] = list(vertices)
        self.faces: List[List[int]] = [list(face) for face in faces]

    @property
    def facets(self) -> List[List[int]]:
        return self.faces

    def to_polyhedrons_set(self, tolerance: float = GEOMETRY_EPSILON):
        """Build the :class:`~solid3d.polyhedrons.PolyhedronsSet` bounded by the mesh."""
        return PolyhedronsSet.from_brep(self.vertices, self.faces, tolerance)

    def __repr__(self) -> str:
        return f"PlyMesh({len(self.vertices)} vertices, {len(self.faces)} faces)"


class _Element:

    def __init__(self, name: str, count: int):
        self.name = name
        self.count = count
        # (name, is_list)
        self.properties: List[Tuple[str, bool]] = []


# ---------------------------------------------------------------------------
# PLY Import
# ---------------------------------------------------------------------------


def read_ply(path_or_file) -> PlyMesh:
    """Read an ASCII PLY mesh from a filesystem path or an open text stream.

    Raises :class:`~solid3d.errors.PlyFormatError` for malformed input.
    """
    if hasattr(path_or_file, 'read'):
        mesh = _parse(path_or_file)
        source = getattr(path_or_file, 'name', 'stream')
    else:
        with open(path_or_file, 'r', encoding='ascii', errors='replace') as stream:
            mesh = _parse(stream)
        source = path_or_file
    logger.debug('read %d vertices and %d faces from %s',
                 len(mesh.vertices), len(mesh.faces), source)
    return mesh


def _numbered_lines(stream: TextIO) -> Iterator[Tuple[int, str]]:
    for number, line in enumerate(stream, start=1):
        yield number, line.strip()


def _next_line(lines: Iterator[Tuple[int, str]], skip_blank: bool = True) -> Tuple[int, str]:
    for number, line in lines:
        if skip_blank and not line:
            continue
        return number, line
    raise PlyFormatError('unexpected end of file')


def _parse_header(lines) -> List[_Element]:
    number, line = _next_line(lines, skip_blank=False)
    if line != 'ply':
        raise PlyFormatError("missing 'ply' magic number at the start of the header", number)
    elements: List[_Element] = []
    seen_format = False
    while True:
        number, line = _next_line(lines)
        fields = line.split()
        keyword = fields[0]
        if keyword == 'end_header':
            break
        if keyword in ('comment', 'obj_info'):
            continue
        if keyword == 'format':
            if len(fields) != 3:
                raise PlyFormatError(f"unable to parse line: {line}", number)
            if fields[1] != 'ascii' or fields[2] != '1.0':
                raise PlyFormatError(f"unsupported format {fields[1]} {fields[2]}, "
                                     f"only ascii 1.0 is handled", number)
            seen_format = True
        elif keyword == 'element':
            if len(fields) != 3:
                raise PlyFormatError(f"unable to parse line: {line}", number)
            try:
                count = int(fields[2])
            except ValueError:
                raise PlyFormatError(f"unable to parse line: {line}", number) from None
            if count < 0:
                raise PlyFormatError(f"negative element count in: {line}", number)
            elements.append(_Element(fields[1], count))
        elif keyword == 'property':
            if not elements:
                raise PlyFormatError(f"property declared before any element: {line}", number)
            elements[-1].properties.append(_parse_property(fields, line, number))
        else:
            raise PlyFormatError(f"unable to parse line: {line}", number)
    if not seen_format:
        raise PlyFormatError("missing 'format' line in the header", number)
    names = [e.name for e in elements]
    if 'vertex' not in names:
        raise PlyFormatError("missing 'element vertex' in the header", number)
    if 'face' not in names:
        raise PlyFormatError("missing 'element face' in the header", number)
    return elements


def _parse_property(fields, line, number) -> Tuple[str, bool]:
    if len(fields) == 3 and fields[1] in _SCALAR_TYPES:
        return fields[2], False
    if len(fields) == 5 and fields[1] == 'list' \
            and fields[2] in _SCALAR_TYPES and fields[3] in _SCALAR_TYPES:
        return fields[4], True
    raise PlyFormatError(f"unable to parse line: {line}", number)


def _coordinate_columns(element: _Element) -> Tuple[int, int, int]:
    names = [name for name, _ in element.properties]
    if any(is_list for _, is_list in element.properties):
        raise PlyFormatError('list properties are not supported on vertices')
    try:
        return names.index('x'), names.index('y'), names.index('z')
    except ValueError:
        raise PlyFormatError('vertex element must declare x, y and z properties') from None


def _parse(stream: TextIO) -> PlyMesh:
    lines = _numbered_lines(stream)
    elements = _parse_header(lines)
    vertices: List[Vector3D] = []
    faces: List[List[int]] = []
    for element in elements:
        if element.name == 'vertex':
            columns = _coordinate_columns(element)
            width = len(element.properties)
            for _ in range(element.count):
                number, line = _next_line(lines)
                fields = line.split()
                if len(fields) != width:
                    raise PlyFormatError(f"unable to parse line: {line}", number)
                try:
                    vertices.append(Vector3D(*(float(fields[c]) for c in columns)))
                except ValueError:
                    raise PlyFormatError(f"unable to parse line: {line}", number) from None
        elif element.name == 'face':
            for _ in range(element.count):
                number, line = _next_line(lines)
                faces.append(_parse_face(element, line, number))
        else:
            for _ in range(element.count):
                _next_line(lines)
    for number, line in lines:
        if line:
            raise PlyFormatError(f"unexpected data after the last element: {line}", number)
    for index, face in enumerate(faces):
        for i in face:
            if not 0 <= i < len(vertices):
                raise PlyFormatError(f"face {index} refers to vertex {i}, "
                                     f"only {len(vertices)} vertices are defined")
    return PlyMesh(vertices, faces)


def _parse_face(element: _Element, line: str, number: int) -> List[int]:
    fields = line.split()
    face: Optional[List[int]] = None
    position = 0
    try:
        for name, is_list in element.properties:
            if not is_list:
                position += 1
                continue
            count = int(fields[position])
            values = [int(v) for v in fields[position + 1:position + 1 + count]]
            if len(values) != count:
                raise ValueError(line)
            position += 1 + count
            if face is None and name in _FACE_LISTS:
                face = values
    except (ValueError, IndexError):
        raise PlyFormatError(f"unable to parse line: {line}", number) from None
    if face is None or position != len(fields):
        raise PlyFormatError(f"unable to parse line: {line}", number)
    return face


# ---------------------------------------------------------------------------
# PLY Export
# ---------------------------------------------------------------------------


def write_ply(mesh_or_brep, path_or_file, *, comment: str = 'solid3d') -> None:
    """Write a :class:`PlyMesh` or :class:`~solid3d.polyhedrons.BRep` as ASCII PLY.

    ``path_or_file`` can be a filesystem path or an open text stream.
    """
    vertices = list(mesh_or_brep.vertices)
    faces = [list(face) for face in mesh_or_brep.facets]

    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'w', encoding='ascii')
        close_when_done = True

    try:
        print('ply', file=stream)
        print('format ascii 1.0', file=stream)
        if comment:
            print(f"comment {comment}", file=stream)
        print(f"element vertex {len(vertices)}", file=stream)
        for axis in 'xyz':
            print(f"property double {axis}", file=stream)
        print(f"element face {len(faces)}", file=stream)
        print('property list uchar int vertex_indices', file=stream)
        print('end_header', file=stream)
        for v in vertices:
            print(f"{v.x!r} {v.y!r} {v.z!r}", file=stream)
        for face in faces:
            print(' '.join(str(i) for i in [len(face)] + face), file=stream)
    finally:
        if close_when_done:
            stream.close()
    logger.debug('wrote %d vertices and %d faces', len(vertices), len(faces))
