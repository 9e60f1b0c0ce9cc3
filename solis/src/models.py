"""
Pydantic models for the SolisCloud response envelope.

Every vendor endpoint answers with the same envelope::

    {"code": "0", "msg": "success", "success": true, "data": {...}}

:class:`Envelope` is generic over the ``data`` payload. The inverter list
payload is modelled only as far as the poller needs it (extra fields are
ignored); the inverter detail payload stays an untyped :data:`RawDetail`
mapping because its field set is vendor-controlled.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from typing import Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict

RawValue = Union[str, int, float, bool, None]
"""Scalar JSON value as found in a vendor detail record."""

RawDetail = dict[str, RawValue]
"""One inverter detail record: vendor field name -> scalar JSON value."""

T = TypeVar("T")


class _VendorModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class Envelope(_VendorModel, Generic[T]):
    """Typed SolisCloud response envelope.

    Attributes:
        code: Vendor status code, ``"0"`` on success.
        msg: Vendor status message.
        success: Vendor success flag.
        data: Endpoint payload; ``None`` on vendor-side failures.
    """

    code: str
    msg: str = ""
    success: bool
    data: T | None = None


class InverterRecord(_VendorModel):
    """One row of the inverter list. ``sn`` is parsed but never emitted."""

    id: str
    sn: str = ""


class Pager(_VendorModel):
    records: list[InverterRecord]
    total: int = 0


class InverterPage(_VendorModel):
    page: Pager
