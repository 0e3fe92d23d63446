"""
Pydantic Data Models for Bonding Curve Configurations

This module defines the immutable value types the pricing engine operates on and
the result types it returns at its boundary.

Key Components:
- CurveKind Enum: the supported curve shapes
- ControlPoint / BezierSegment / BezierCurveData: piecewise cubic Bezier curves
  in normalized (supply fraction, price fraction) space
- BondingCurveConfig: complete pricing configuration for an NFT collection
- BezierPath: editor-side model in which every shared endpoint is stored once
- ValidationIssue / ValidationResult, PriceResult, PricePoint, SampleResult:
  explicit results returned instead of raised errors

Data Validation Features:
- Models only check types on construction. Structural invariants (ranges,
  continuity, monotonicity) are reported by `validator.validate` so that an
  editor can show every problem with a curve at once.
- All models are frozen; a changed configuration is a new instance.
- JSON keys written by the studio front end (camelCase, `type`, `bezierCurve`)
  are accepted alongside the snake_case field names.
"""
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from mcp_solana_bonding_curve.errors import CurveValidationError, PricingErrorKind


class CurveKind(str, Enum):
    linear = "linear"
    exponential = "exponential"
    logarithmic = "logarithmic"
    bezier = "bezier"


class CurveInvariant(str, Enum):
    """Invariants a configuration must satisfy before it is priced or deployed."""

    non_negative_base_price = "non_negative_base_price"
    non_negative_price_increment = "non_negative_price_increment"
    positive_max_supply = "positive_max_supply"
    bezier_data_matches_kind = "bezier_data_matches_kind"
    non_empty_segments = "non_empty_segments"
    control_points_in_unit_square = "control_points_in_unit_square"
    spans_full_domain = "spans_full_domain"
    continuity = "continuity"
    monotonic_x = "monotonic_x"
    price_range = "price_range"


class ControlPoint(BaseModel):
    """A point in normalized (supply fraction, price fraction) space."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class BezierSegment(BaseModel):
    """Cubic Bezier segment. The curve passes through p0 and p3; p1 and p2 are handles."""

    model_config = ConfigDict(frozen=True)

    p0: ControlPoint
    p1: ControlPoint
    p2: ControlPoint
    p3: ControlPoint

    def control_points(self) -> Tuple[ControlPoint, ControlPoint, ControlPoint, ControlPoint]:
        return (self.p0, self.p1, self.p2, self.p3)


class BezierCurveData(BaseModel):
    model_config = ConfigDict(frozen=True)

    segments: Tuple[BezierSegment, ...] = ()
    min_price: int = Field(..., validation_alias=AliasChoices("min_price", "minPrice"))
    max_price: int = Field(..., validation_alias=AliasChoices("max_price", "maxPrice"))


class BondingCurveConfig(BaseModel):
    """
    Pricing configuration for a collection.

    Prices are integers in the smallest currency unit (lamports). `bezier` must be
    present exactly when `kind` is `CurveKind.bezier`.
    """

    model_config = ConfigDict(frozen=True)

    kind: CurveKind = Field(..., validation_alias=AliasChoices("kind", "type", "curve_type"))
    base_price: int = Field(0, validation_alias=AliasChoices("base_price", "basePrice"))
    price_increment: int = Field(0, validation_alias=AliasChoices("price_increment", "priceIncrement"))
    max_supply: int = Field(..., validation_alias=AliasChoices("max_supply", "maxSupply"))
    bezier: Optional[BezierCurveData] = Field(
        None, validation_alias=AliasChoices("bezier", "bezierCurve", "bezier_curve")
    )


class BezierPath(BaseModel):
    """
    Editor model of a piecewise Bezier curve.

    Segment i runs from anchors[i] to anchors[i + 1] with handles[i] as its
    (p1, p2). An anchor shared by two segments exists once, so moving it can
    never open a gap between them.
    """

    model_config = ConfigDict(frozen=True)

    anchors: Tuple[ControlPoint, ...]
    handles: Tuple[Tuple[ControlPoint, ControlPoint], ...]
    min_price: int
    max_price: int

    @model_validator(mode="after")
    def _check_counts(self) -> "BezierPath":
        if len(self.handles) < 1:
            raise ValueError("BezierPath needs at least one segment")
        if len(self.anchors) != len(self.handles) + 1:
            raise ValueError(
                f"BezierPath with {len(self.handles)} segment(s) needs {len(self.handles) + 1} anchors, "
                f"got {len(self.anchors)}"
            )
        return self

    @property
    def segment_count(self) -> int:
        return len(self.handles)

    def segment(self, index: int) -> BezierSegment:
        p1, p2 = self.handles[index]
        return BezierSegment(p0=self.anchors[index], p1=p1, p2=p2, p3=self.anchors[index + 1])

    def to_curve_data(self) -> BezierCurveData:
        segments = tuple(self.segment(i) for i in range(self.segment_count))
        return BezierCurveData(segments=segments, min_price=self.min_price, max_price=self.max_price)

    @classmethod
    def from_curve_data(cls, data: BezierCurveData) -> "BezierPath":
        """Build a path from segment form. Raises CurveValidationError if segments do not share endpoints."""
        if not data.segments:
            raise CurveValidationError("Curve must have at least one segment")
        anchors = [data.segments[0].p0]
        handles = []
        for i, seg in enumerate(data.segments):
            if seg.p0 != anchors[-1]:
                message = f"Segment {i} does not start where segment {i - 1} ends"
                issue = ValidationIssue(invariant=CurveInvariant.continuity, message=message, segment_index=i)
                raise CurveValidationError(message, issues=[issue])
            handles.append((seg.p1, seg.p2))
            anchors.append(seg.p3)
        return cls(anchors=tuple(anchors), handles=tuple(handles), min_price=data.min_price, max_price=data.max_price)

    def move_anchor(self, index: int, point: ControlPoint) -> "BezierPath":
        anchors = list(self.anchors)
        anchors[index] = point
        return self.model_copy(update={"anchors": tuple(anchors)})

    def move_handle(self, segment_index: int, handle: int, point: ControlPoint) -> "BezierPath":
        """Move handle 1 (p1) or 2 (p2) of a segment."""
        if handle not in (1, 2):
            raise ValueError(f"handle must be 1 or 2, got {handle}")
        handles = list(self.handles)
        p1, p2 = handles[segment_index]
        handles[segment_index] = (point, p2) if handle == 1 else (p1, point)
        return self.model_copy(update={"handles": tuple(handles)})

    def split_segment(self, index: int, t: float = 0.5) -> "BezierPath":
        """Split a segment in two at parameter t (de Casteljau); the curve's shape is unchanged."""
        seg = self.segment(index)

        def lerp(a: ControlPoint, b: ControlPoint) -> ControlPoint:
            return ControlPoint(x=a.x + (b.x - a.x) * t, y=a.y + (b.y - a.y) * t)

        a, b, c = lerp(seg.p0, seg.p1), lerp(seg.p1, seg.p2), lerp(seg.p2, seg.p3)
        d, e = lerp(a, b), lerp(b, c)
        mid = lerp(d, e)

        anchors = list(self.anchors)
        anchors.insert(index + 1, mid)
        handles = list(self.handles)
        handles[index:index + 1] = [(a, d), (e, c)]
        return self.model_copy(update={"anchors": tuple(anchors), "handles": tuple(handles)})

    def remove_anchor(self, index: int) -> "BezierPath":
        """Merge the two segments meeting at an interior anchor."""
        if index <= 0 or index >= len(self.anchors) - 1:
            raise ValueError("Only interior anchors can be removed")
        anchors = list(self.anchors)
        del anchors[index]
        handles = list(self.handles)
        handles[index - 1:index + 1] = [(handles[index - 1][0], handles[index][1])]
        return self.model_copy(update={"anchors": tuple(anchors), "handles": tuple(handles)})

    def with_price_range(self, min_price: int, max_price: int) -> "BezierPath":
        return self.model_copy(update={"min_price": min_price, "max_price": max_price})


# --- Boundary results ---

class ValidationIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    invariant: CurveInvariant
    message: str
    segment_index: Optional[int] = None


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    issues: List[ValidationIssue] = []

    @property
    def invariants(self) -> List[CurveInvariant]:
        return [issue.invariant for issue in self.issues]


class PricePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    supply: int
    price: int


class PriceResult(BaseModel):
    """Outcome of pricing one edition: either `price` or `error` is set."""

    model_config = ConfigDict(frozen=True)

    supply: int
    price: Optional[int] = None
    error: Optional[PricingErrorKind] = None
    message: Optional[str] = None
    issues: List[ValidationIssue] = []

    @property
    def ok(self) -> bool:
        return self.error is None


class SampleResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    points: List[PricePoint] = []
    error: Optional[PricingErrorKind] = None
    message: Optional[str] = None
    issues: List[ValidationIssue] = []

    @property
    def ok(self) -> bool:
        return self.error is None
