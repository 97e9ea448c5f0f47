"""2D affine transform value type (a, b, c, d, tx, ty)."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class AffineTransform:
    """Maps (x, y) to (a*x + c*y + tx, b*x + d*y + ty)."""
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls()

    @classmethod
    def translation(cls, tx: float, ty: float) -> "AffineTransform":
        return cls(tx=tx, ty=ty)

    @classmethod
    def scaling(cls, sx: float, sy: float | None = None) -> "AffineTransform":
        return cls(a=sx, d=sx if sy is None else sy)

    @classmethod
    def rotation(cls, degrees: float, center: tuple | None = None) -> "AffineTransform":
        """Rotation by ``degrees`` (clockwise on screen, since y points down)
        about ``center`` or the origin."""
        rad = math.radians(degrees)
        cos_r, sin_r = math.cos(rad), math.sin(rad)
        # Keep exact zeros for right angles so axis-aligned checks still work
        if abs(cos_r) < 1e-15:
            cos_r = 0.0
        if abs(sin_r) < 1e-15:
            sin_r = 0.0
        rot = cls(a=cos_r, b=sin_r, c=-sin_r, d=cos_r)
        if center is None:
            return rot
        cx, cy = center
        return cls.translation(cx, cy).multiply(rot).multiply(cls.translation(-cx, -cy))

    def multiply(self, other: "AffineTransform") -> "AffineTransform":
        """Compose so that ``other`` is applied first, then ``self``."""
        return AffineTransform(
            a=self.a * other.a + self.c * other.b,
            b=self.b * other.a + self.d * other.b,
            c=self.a * other.c + self.c * other.d,
            d=self.b * other.c + self.d * other.d,
            tx=self.a * other.tx + self.c * other.ty + self.tx,
            ty=self.b * other.tx + self.d * other.ty + self.ty,
        )

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    def is_invertible(self) -> bool:
        det = self.determinant
        return (det != 0 and math.isfinite(det)
                and math.isfinite(self.tx) and math.isfinite(self.ty))

    def invert(self) -> "AffineTransform":
        if not self.is_invertible():
            raise ValueError(f"Transform is not invertible: {self}")
        det = self.determinant
        return AffineTransform(
            a=self.d / det,
            b=-self.b / det,
            c=-self.c / det,
            d=self.a / det,
            tx=(self.c * self.ty - self.d * self.tx) / det,
            ty=(self.b * self.tx - self.a * self.ty) / det,
        )

    def transform(self, point: tuple) -> tuple[float, float]:
        x, y = point
        return (self.a * x + self.c * y + self.tx,
                self.b * x + self.d * y + self.ty)
