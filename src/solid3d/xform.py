## 3x3 matrix operations for changes of basis in solid3d

## Copyright (c) 2025 solid3d contributors
## All rights reserved

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""3x3 matrices used as standard/local basis transforms"""

from solid3d.vector import Vector3D, linear_combination

## a matrix is represented as a list of three three-element rows.
## Rows are stored unless the transpose property is true, in which
## case the stored lists are the columns.  Vectors are Vector3D
## instances and Mx always means a column vector.


def _isgoodnum(x):
    return (not isinstance(x, bool)) and isinstance(x, (int, float))


class Matrix3D:
    """3x3 matrix class for rotating and changing the basis of 3D vectors"""

    def __init__(self, a=False, trans=False):
        self.m = [[1.0, 0.0, 0.0],
                  [0.0, 1.0, 0.0],
                  [0.0, 0.0, 1.0]]
        self.trans = False

        if isinstance(a, Matrix3D):
            for i in range(3):
                self.setrow(i, a.getrow(i))

        elif isinstance(a, (tuple, list)):
            if len(a) == 3:
                if not all(isinstance(r, (tuple, list)) and len(r) == 3 for r in a):
                    raise ValueError('bad rows in matrix initialization: {}'.format(a))
                for i in range(3):
                    for j in range(3):
                        x = a[i][j]
                        if _isgoodnum(x):
                            self.m[i][j] = float(x)
                        else:
                            raise ValueError('bad element in matrix initialization: {}'.format(x))
            elif len(a) == 9:
                for i in range(3):
                    for j in range(3):
                        x = a[i * 3 + j]
                        if _isgoodnum(x):
                            self.m[i][j] = float(x)
                        else:
                            raise ValueError('bad element in matrix initialization: {}'.format(x))
            else:
                raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        elif a is not False:
            raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        self.trans = trans

    @classmethod
    def from_columns(cls, u, v, w):
        """matrix whose columns are the vectors u, v and w"""
        return cls([[u.x, v.x, w.x],
                    [u.y, v.y, w.y],
                    [u.z, v.z, w.z]])

    def __repr__(self):
        return "Matrix3D({},{},{},{})".format(self.getrow(0), self.getrow(1),
                                              self.getrow(2), False)

    def __eq__(self, other):
        if not isinstance(other, Matrix3D):
            return NotImplemented
        return self.to_list() == other.to_list()

    #return value indexed by i,j
    def get(self, i, j):
        if i < 0 or i > 2 or j < 0 or j > 2:
            raise ValueError('bad index passed to get: {},{}'.format(i, j))
        if self.trans:
            return self.m[j][i]
        else:
            return self.m[i][j]

    #set value indexed by i,j
    def set(self, i, j, x):
        if i < 0 or i > 2 or j < 0 or j > 2:
            raise ValueError('bad index passed to set: {},{}'.format(i, j))
        if _isgoodnum(x):
            if self.trans:
                self.m[j][i] = float(x)
            else:
                self.m[i][j] = float(x)
        else:
            raise ValueError('bad value passed to set: {}'.format(x))

    def getrow(self, i):
        if i < 0 or i > 2:
            raise ValueError('bad row passed to getrow: {}'.format(i))
        if self.trans:
            return [self.m[0][i], self.m[1][i], self.m[2][i]]
        else:
            return list(self.m[i])

    def getcol(self, j):
        if j < 0 or j > 2:
            raise ValueError('bad column passed to getcol: {}'.format(j))
        if not self.trans:
            return [self.m[0][j], self.m[1][j], self.m[2][j]]
        else:
            return list(self.m[j])

    def setrow(self, i, x):
        if len(x) != 3:
            raise ValueError('bad non-vector passed to setrow: {}'.format(x))
        if i < 0 or i > 2:
            raise ValueError('bad row index passed to setrow: {}'.format(i))
        for j in range(3):
            self.set(i, j, x[j])

    def setcol(self, j, x):
        if len(x) != 3:
            raise ValueError('bad non-vector passed to setcol: {}'.format(x))
        if j < 0 or j > 2:
            raise ValueError('bad column index passed to setcol: {}'.format(j))
        for i in range(3):
            self.set(i, j, x[i])

    def transpose(self):
        """return the transposed matrix, sharing no storage with self"""
        return Matrix3D([self.getcol(j) for j in range(3)])

    def to_list(self):
        return [self.getrow(i) for i in range(3)]

    def determinant(self):
        a = self.to_list()
        return (a[0][0] * (a[1][1] * a[2][2] - a[2][1] * a[1][2])
                - a[1][0] * (a[0][1] * a[2][2] - a[2][1] * a[0][2])
                + a[2][0] * (a[0][1] * a[1][2] - a[1][1] * a[0][2]))

    def is_orthogonal(self, threshold=1e-14):
        """True if M x M^T is the identity within threshold"""
        product = self.mul(self.transpose())
        for i in range(3):
            for j in range(3):
                expected = 1.0 if i == j else 0.0
                if abs(product.get(i, j) - expected) > threshold:
                    return False
        return True

    # matrix multiply.  If x is a matrix, compute MX.  If X is a
    # vector, compute Mx. If x is a scalar, compute xM. If x isn't any
    # of these, raise ValueError.  Respects transpose flag.

    def mul(self, x):
        if isinstance(x, Matrix3D):
            result = Matrix3D()
            for i in range(3):
                row = self.getrow(i)
                for j in range(3):
                    col = x.getcol(j)
                    result.set(i, j, linear_combination(row[0], col[0],
                                                        row[1], col[1],
                                                        row[2], col[2]))
            return result
        elif isinstance(x, Vector3D):
            coords = []
            for i in range(3):
                row = self.getrow(i)
                coords.append(linear_combination(row[0], x.x, row[1], x.y, row[2], x.z))
            return Vector3D(*coords)
        elif _isgoodnum(x):
            result = Matrix3D()
            for i in range(3):
                result.setrow(i, [c * x for c in self.getrow(i)])
            return result

        raise ValueError('bad thing passed to mul(): {}'.format(x))
