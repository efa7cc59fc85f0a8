import io

import pytest

from solid3d.errors import PlyFormatError
from solid3d.io.ply import PlyMesh, read_ply, write_ply
from solid3d.polyhedrons import PolyhedronsSet
from solid3d.vector import Vector3D

HEADER = ['ply',
          'format ascii 1.0',
          'comment tetrahedron',
          'element vertex 4',
          'property double x',
          'property double y',
          'property double z',
          'element face 4',
          'property list uchar int vertex_indices',
          'end_header']
VERTICES = ['1 2 3', '2 2 4', '2 3 3', '1 3 4']
FACES = ['3 0 2 1', '3 0 1 3', '3 0 3 2', '3 1 2 3']


def _stream(header=HEADER, vertices=VERTICES, faces=FACES, extra=()):
    return io.StringIO('\n'.join(list(header) + list(vertices) + list(faces) + list(extra)) + '\n')


def _error(text_or_stream):
    stream = io.StringIO(text_or_stream) if isinstance(text_or_stream, str) else text_or_stream
    with pytest.raises(PlyFormatError) as info:
        read_ply(stream)
    return info.value


def test_read_tetrahedron():
    mesh = read_ply(_stream())
    assert repr(mesh) == 'PlyMesh(4 vertices, 4 faces)'
    assert mesh.vertices[1] == Vector3D(2, 2, 4)
    assert mesh.faces == [[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]]
    tetra = mesh.to_polyhedrons_set()
    assert abs(tetra.get_size() - 1.0 / 3.0) < 1e-12
    assert tetra.get_barycenter().distance(Vector3D(1.5, 2.5, 3.5)) < 1e-12


def test_read_from_path(tmp_path):
    path = tmp_path / 'tetra.ply'
    path.write_text(_stream().getvalue())
    mesh = read_ply(str(path))
    assert len(mesh.vertices) == 4
    assert len(mesh.faces) == 4


def test_extra_properties_and_elements():
    header = ['ply',
              'format ascii 1.0',
              'element vertex 4',
              'property float nx',
              'property double x',
              'property double y',
              'property double z',
              'property uchar red',
              'element face 4',
              'property uchar flags',
              'property list uchar int vertex_indices',
              'element edge 1',
              'property int vertex1',
              'property int vertex2',
              'end_header']
    vertices = [f"0.5 {v} 255" for v in VERTICES]
    faces = [f"7 {f}" for f in FACES]
    mesh = read_ply(_stream(header, vertices, faces, ['0 1', '']))
    assert mesh.vertices[0] == Vector3D(1, 2, 3)
    assert mesh.faces[3] == [1, 2, 3]


def test_write_and_read_back(tmp_path):
    brep = PolyhedronsSet.box(0, 1, 0, 2, 0, 3).get_brep()
    path = tmp_path / 'box.ply'
    write_ply(brep, str(path))
    mesh = read_ply(str(path))
    assert len(mesh.vertices) == 8
    assert len(mesh.faces) == 6
    assert abs(mesh.to_polyhedrons_set().get_size() - 6.0) < 1e-12


def test_write_to_stream():
    out = io.StringIO()
    write_ply(PlyMesh([Vector3D(0.1, 0, 0), Vector3D(1, 0, 0), Vector3D(0, 1, 0)], [[0, 1, 2]]),
              out, comment='triangle')
    lines = out.getvalue().splitlines()
    assert lines[:3] == ['ply', 'format ascii 1.0', 'comment triangle']
    assert lines[3] == 'element vertex 3'
    assert lines[-4:] == ['0.1 0.0 0.0', '1.0 0.0 0.0', '0.0 1.0 0.0', '3 0 1 2']
    mesh = read_ply(io.StringIO(out.getvalue()))
    assert mesh.vertices[0].x == 0.1


class TestMalformedInput:
    """errors carry the offending line number"""

    def test_empty_input(self):
        e = _error('')
        assert str(e) == 'unexpected end of file'
        assert e.line_number is None

    def test_bad_magic(self):
        e = _error('plx\n')
        assert e.line_number == 1
        assert str(e).startswith("missing 'ply' magic number")

    def test_binary_format(self):
        header = list(HEADER)
        header[1] = 'format binary_little_endian 1.0'
        e = _error(_stream(header))
        assert e.line_number == 2
        assert 'binary_little_endian' in str(e)

    def test_missing_face_element(self):
        header = HEADER[:7] + ['end_header']
        e = _error(_stream(header, VERTICES, ()))
        assert str(e) == "missing 'element face' in the header (line 8)"

    def test_unknown_keyword(self):
        header = HEADER[:3] + ['colour red'] + HEADER[3:]
        e = _error(_stream(header))
        assert str(e) == 'unable to parse line: colour red (line 4)'

    def test_property_before_element(self):
        header = HEADER[:2] + ['property double w'] + HEADER[2:]
        assert _error(_stream(header)).line_number == 3

    def test_short_vertex_line(self):
        vertices = ['1 2'] + VERTICES[1:]
        e = _error(_stream(vertices=vertices))
        assert str(e) == 'unable to parse line: 1 2 (line 11)'

    def test_bad_number(self):
        vertices = VERTICES[:2] + ['2 three 3'] + VERTICES[3:]
        assert _error(_stream(vertices=vertices)).line_number == 13

    def test_short_face_line(self):
        faces = FACES[:3] + ['3 1 2']
        e = _error(_stream(faces=faces))
        assert str(e) == 'unable to parse line: 3 1 2 (line 18)'

    def test_truncated_file(self):
        e = _error(_stream(faces=FACES[:2]))
        assert str(e) == 'unexpected end of file'

    def test_trailing_data(self):
        e = _error(_stream(extra=['9 9 9']))
        assert str(e) == 'unexpected data after the last element: 9 9 9 (line 19)'

    def test_vertex_index_out_of_range(self):
        faces = ['3 0 2 9'] + FACES[1:]
        e = _error(_stream(faces=faces))
        assert str(e) == 'face 0 refers to vertex 9, only 4 vertices are defined'
