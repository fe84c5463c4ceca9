from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from swimtrackr.core.ordering import Direction


class ProgramPackageCreate(BaseModel):
    name: str
    description: Optional[str] = None
    is_default: Optional[bool] = False
    facility_id: Optional[str] = None


class ProgramPackageResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_default: Optional[bool] = None
    facility_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LevelCreate(BaseModel):
    name: str
    description: Optional[str] = None
    program_package_id: Optional[str] = None  # defaults to the caller's facility package


class LevelUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class LevelResponse(BaseModel):
    id: str
    program_package_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    order_index: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LevelWithTaskCount(LevelResponse):
    tasks_count: int = 0


class TaskCreate(BaseModel):
    name: str
    description: Optional[str] = None


class TaskUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class TaskResponse(BaseModel):
    id: str
    level_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    order_index: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReorderRequest(BaseModel):
    direction: Direction
