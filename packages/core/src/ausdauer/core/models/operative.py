"""Operative Domain Model -- 核心层关心的人员档案子集"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import OperativeRole


class Operative(BaseModel):
    """人员档案

    score 只能由评分引擎、管理员覆盖或重置修改。
    """

    operative_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(description="显示名")
    email: str = Field(default="", description="邮件地址，用于截止提醒")
    role: OperativeRole = Field(default=OperativeRole.EMPLOYEE, description="角色")
    score: int = Field(default=0, ge=0, description="声誉分")
    designation: str = Field(default="", description="职位")
    department: str = Field(default="", description="部门")
    created_at: datetime = Field(description="创建时间")


class Requester(BaseModel):
    """已验证的请求者身份，由身份协作方提供"""

    id: str
    role: OperativeRole
    display_name: str

    @classmethod
    def from_operative(cls, operative: Operative) -> "Requester":
        return cls(
            id=operative.operative_id,
            role=operative.role,
            display_name=operative.name,
        )
