"""I/O utilities for solid3d."""

from .ply import PlyMesh, read_ply, write_ply

__all__ = ['PlyMesh', 'read_ply', 'write_ply']
