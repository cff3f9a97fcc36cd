"""
Room membership models, decoded from the host's login and room sync events.
"""

from typing import Optional

from pydantic import BaseModel, Field, StrictInt


class MemberReference(BaseModel):
    member_number: Optional[int] = Field(None, alias="MemberNumber")

    model_config = {"populate_by_name": True}


class RoomMember(BaseModel):
    member_number: StrictInt = Field(alias="MemberNumber")
    name: str = Field("", alias="Name")
    item_permission: int = Field(2, alias="ItemPermission")
    white_list: list[int] = Field(default_factory=list, alias="WhiteList")
    black_list: list[int] = Field(default_factory=list, alias="BlackList")
    ownership: Optional[MemberReference] = Field(None, alias="Ownership")
    lovership: list[MemberReference] = Field(default_factory=list, alias="Lovership")

    model_config = {"populate_by_name": True}

    def __str__(self) -> str:
        return f"{self.name} ({self.member_number})"


class ChatRoomSyncData(BaseModel):
    name: str = Field("", alias="Name")
    members: list[RoomMember] = Field(default_factory=list, alias="Character")

    model_config = {"populate_by_name": True}


class MemberJoinData(BaseModel):
    source_member_number: StrictInt = Field(alias="SourceMemberNumber")
    character: RoomMember = Field(alias="Character")

    model_config = {"populate_by_name": True}


class MemberLeaveData(BaseModel):
    source_member_number: StrictInt = Field(alias="SourceMemberNumber")

    model_config = {"populate_by_name": True}
