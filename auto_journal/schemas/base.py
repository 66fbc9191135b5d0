"""
Shared schema base.

The HTTP contract is camelCase on the wire (purchaseId,
journalEntryId); Python code keeps snake_case attribute names.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }
