"""
Record base model.

Every engine output is serializable as a flat key/value record with stable
camelCase field names (compositeScore, breakEvenSales, ...). Inputs accept
either the camelCase alias or the Python field name.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base for all engine DTOs"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_record(self) -> dict:
        """Serialize with the public field names"""
        return self.model_dump(by_alias=True, mode="json")


class FrozenRecord(Record):
    """Immutable record (profiles, criteria, derived results)"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
