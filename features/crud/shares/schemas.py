from typing import Optional

from ninja import Schema


class ShareCreateSchema(Schema):
    email: str


class MemberOutSchema(Schema):
    user_id: int
    email: str


class MemberResponse(Schema):
    status: str
    message: str
    data: Optional[MemberOutSchema] = None


class MemberListResponse(Schema):
    status: str
    message: str
    data: list[MemberOutSchema]
