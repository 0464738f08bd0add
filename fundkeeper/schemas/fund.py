"""
fundkeeper/schemas/fund.py

Saved funds are opaque client records. The server only requires that a
fund is a JSON object with a non-null 'id'; every other key is stored and
returned untouched.
"""

from typing import Any, Dict

from pydantic import BaseModel, field_validator


def _require_id(v: Dict[str, Any]) -> Dict[str, Any]:
    if v.get("id") is None:
        raise ValueError("fund must have an 'id'")
    return v


class SaveFundRequest(BaseModel):
    """
    Body for POST /save:
      { "fund": { "id": "F1", "name": "Fund One", ... } }
    """
    fund: Dict[str, Any]

    @field_validator("fund")
    @classmethod
    def fund_has_id(cls, v):
        return _require_id(v)


class RemoveFundRequest(BaseModel):
    """
    Body for POST /remove:
      { "fund": { "id": "F1" } }
    Extra keys on 'fund' are ignored; matching is by 'id' only.
    """
    fund: Dict[str, Any]

    @field_validator("fund")
    @classmethod
    def fund_has_id(cls, v):
        return _require_id(v)

    @property
    def fund_id(self) -> Any:
        return self.fund["id"]
