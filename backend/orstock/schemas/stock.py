from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional, Union

Number = Union[int, float]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class StockRecord(CamelModel):
    date: Number
    stock: Number


class Device(CamelModel):
    id: Number
    name: str
    initial_stock: Number = 0
    stock_records: list[StockRecord] = []


class CabinetResponse(CamelModel):
    id: int
    name: str
    month: int
    year: int
    devices: list[Device] = []
    last_updated: Optional[datetime] = None
    last_updated_by: Optional[str] = None
    version: int = 1


class CabinetSummary(CamelModel):
    id: int
    name: Optional[str] = None
    month: int
    year: int
    last_updated: Optional[datetime] = None
    last_updated_by: Optional[str] = None
    table_count: int
    device_count: int


class SaveResponse(CamelModel):
    success: bool = True
    last_updated: datetime
    version: int


class UpdateResponse(CamelModel):
    success: bool = True
    version: int
