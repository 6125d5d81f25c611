"""
Group management service.

Groups are membership circles with exactly one OWNER (the creator) and any
number of ADMIN or MEMBER members. Ownership cannot be transferred.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from rndvx.database.collections import GROUPS, GROUP_MEMBERS, INVITES, USERS
from rndvx.enums import GroupRole, InviteStatus
from rndvx.services.access import AccessPolicy, parse_object_id
from rndvx.services.serializers import format_group, format_member

logger = logging.getLogger(__name__)


class GroupService:
    """
    Manages groups and role-tagged membership.
    """

    def __init__(self, db: AsyncIOMotorDatabase, access: Optional[AccessPolicy] = None):
        """
        Initialize GroupService.

        Args:
            db: MongoDB database connection
            access: Shared access checks (built from db if omitted)
        """
        self._db = db
        self._access = access or AccessPolicy(db)
        self._groups_collection = db[GROUPS]
        self._members_collection = db[GROUP_MEMBERS]
        self._users_collection = db[USERS]
        self._invites_collection = db[INVITES]

    # =========================================================================
    # Population
    # =========================================================================

    async def _populate(self, groups: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Attach members with user projections to each group."""
        if not groups:
            return []

        group_ids = [g["_id"] for g in groups]
        memberships = await self._members_collection.find(
            {"groupId": {"$in": group_ids}}
        ).sort("createdAt", 1).to_list(length=None)

        user_ids = list({m["userId"] for m in memberships})
        users = await self._users_collection.find(
            {"_id": {"$in": user_ids}}, {"passwordHash": 0}
        ).to_list(length=None)
        users_by_id = {u["_id"]: u for u in users}

        members_by_group: Dict[ObjectId, List[Dict[str, Any]]] = {gid: [] for gid in group_ids}
        for m in memberships:
            members_by_group.setdefault(m["groupId"], []).append(
                format_member(m, users_by_id.get(m["userId"]))
            )

        return [format_group(g, members_by_group.get(g["_id"], [])) for g in groups]

    async def _format_member_with_user(self, membership: Dict[str, Any]) -> Dict[str, Any]:
        user = await self._users_collection.find_one(
            {"_id": membership["userId"]}, {"passwordHash": 0}
        )
        return format_member(membership, user)

    # =========================================================================
    # Groups
    # =========================================================================

    async def list_groups(self, user_id: str) -> List[Dict[str, Any]]:
        """Groups the user belongs to, newest first."""
        user_oid = ObjectId(user_id)
        memberships = await self._members_collection.find(
            {"userId": user_oid}
        ).to_list(length=None)
        group_ids = [m["groupId"] for m in memberships]
        if not group_ids:
            return []

        groups = await self._groups_collection.find(
            {"_id": {"$in": group_ids}}
        ).sort("createdAt", -1).to_list(length=None)
        return await self._populate(groups)

    async def get_group(self, group_id: str, user_id: str) -> Dict[str, Any]:
        """
        Get a group with its members.

        Raises:
            NotFoundException: Group not found
            ForbiddenException: Requester is not a member
        """
        group = await self._access.get_group(group_id)
        await self._access.require_member(group["_id"], ObjectId(user_id))
        populated = await self._populate([group])
        return populated[0]

    async def create_group(self, owner_id: str, name: str) -> Dict[str, Any]:
        """Create a group and its OWNER membership."""
        owner_oid = ObjectId(owner_id)
        now = datetime.now(timezone.utc)

        group_doc = {
            "name": name.strip(),
            "ownerId": owner_oid,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self._groups_collection.insert_one(group_doc)
        group_doc["_id"] = result.inserted_id

        await self._members_collection.insert_one({
            "groupId": result.inserted_id,
            "userId": owner_oid,
            "role": GroupRole.OWNER.value,
            "createdAt": now,
            "updatedAt": now,
        })

        logger.info(f"Group {result.inserted_id} created by {owner_id}")
        populated = await self._populate([group_doc])
        return populated[0]

    async def update_group(self, group_id: str, user_id: str, name: Optional[str] = None) -> Dict[str, Any]:
        """
        Rename a group. OWNER or ADMIN only.
        """
        group = await self._access.get_group(group_id)
        await self._access.require_role(
            group["_id"],
            ObjectId(user_id),
            message="Only group admins can update the group",
        )

        if name is not None:
            now = datetime.now(timezone.utc)
            await self._groups_collection.update_one(
                {"_id": group["_id"]},
                {"$set": {"name": name.strip(), "updatedAt": now}}
            )
            group["name"] = name.strip()
            group["updatedAt"] = now

        populated = await self._populate([group])
        return populated[0]

    async def delete_group(self, group_id: str, user_id: str) -> None:
        """
        Delete a group with its memberships and pending invites. Owner only.
        """
        group = await self._access.get_group(group_id)
        if group["ownerId"] != ObjectId(user_id):
            raise ForbiddenException(
                message="Only the group owner can delete the group",
                code="NOT_GROUP_OWNER"
            )

        await self._members_collection.delete_many({"groupId": group["_id"]})
        await self._invites_collection.delete_many(
            {"groupId": group["_id"], "status": InviteStatus.PENDING.value}
        )
        await self._groups_collection.delete_one({"_id": group["_id"]})

        logger.info(f"Group {group_id} deleted by {user_id}")

    # =========================================================================
    # Members
    # =========================================================================

    async def add_member(
        self,
        group_id: str,
        requester_id: str,
        member_id: str,
        role: str = GroupRole.MEMBER.value,
    ) -> Dict[str, Any]:
        """
        Add a user to a group, or set the role of an existing member.
        OWNER or ADMIN only.
        """
        group = await self._access.get_group(group_id)
        await self._access.require_role(
            group["_id"],
            ObjectId(requester_id),
            message="Only group admins can add members",
        )

        member_oid = parse_object_id(member_id, "User not found", "USER_NOT_FOUND")
        user = await self._users_collection.find_one({"_id": member_oid}, {"passwordHash": 0})
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        if member_oid == group["ownerId"]:
            raise ValidationException(
                message="Cannot change the group owner's role",
                code="OWNER_ROLE_IMMUTABLE"
            )

        now = datetime.now(timezone.utc)
        await self._members_collection.update_one(
            {"groupId": group["_id"], "userId": member_oid},
            {
                "$set": {"role": role, "updatedAt": now},
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
        )

        logger.info(f"User {member_id} added to group {group_id} as {role}")
        return format_member(
            {"groupId": group["_id"], "userId": member_oid, "role": role, "createdAt": now},
            user,
        )

    async def ensure_member(self, group_id: ObjectId, user_id: ObjectId) -> None:
        """
        Make a user a MEMBER of a group unless they already belong to it.

        An existing role (OWNER, ADMIN) is never downgraded.
        """
        now = datetime.now(timezone.utc)
        await self._members_collection.update_one(
            {"groupId": group_id, "userId": user_id},
            {
                "$setOnInsert": {
                    "role": GroupRole.MEMBER.value,
                    "createdAt": now,
                    "updatedAt": now,
                }
            },
            upsert=True,
        )

    async def update_member_role(
        self,
        group_id: str,
        requester_id: str,
        member_id: str,
        role: str,
    ) -> Dict[str, Any]:
        """
        Change a member's role between ADMIN and MEMBER. Owner only.
        """
        group = await self._access.get_group(group_id)
        requester_oid = ObjectId(requester_id)
        if group["ownerId"] != requester_oid:
            raise ForbiddenException(
                message="Only the group owner can change roles",
                code="NOT_GROUP_OWNER"
            )

        member_oid = parse_object_id(member_id, "Member not found in group", "MEMBER_NOT_FOUND")
        if member_oid == requester_oid:
            raise ValidationException(
                message="Cannot change your own role",
                code="CANNOT_CHANGE_OWN_ROLE"
            )

        membership = await self._access.get_membership(group["_id"], member_oid)
        if not membership:
            raise NotFoundException(message="Member not found in group", code="MEMBER_NOT_FOUND")

        now = datetime.now(timezone.utc)
        await self._members_collection.update_one(
            {"groupId": group["_id"], "userId": member_oid},
            {"$set": {"role": role, "updatedAt": now}}
        )
        membership["role"] = role

        logger.info(f"Member {member_id} of group {group_id} is now {role}")
        return await self._format_member_with_user(membership)

    async def remove_member(self, group_id: str, requester_id: str, member_id: str) -> None:
        """
        Remove a member. Members may remove themselves; OWNER and ADMIN may
        remove anyone except the owner.
        """
        group = await self._access.get_group(group_id)
        requester_oid = ObjectId(requester_id)
        member_oid = parse_object_id(member_id, "Member not found in group", "MEMBER_NOT_FOUND")

        is_self = member_oid == requester_oid
        if not is_self:
            requester = await self._access.get_membership(group["_id"], requester_oid)
            if not requester or requester.get("role") not in AccessPolicy.MANAGER_ROLES:
                raise ForbiddenException(
                    message="You do not have permission to remove this member",
                    code="INSUFFICIENT_ROLE"
                )

        if member_oid == group["ownerId"]:
            raise ValidationException(
                message="Cannot remove the group owner",
                code="CANNOT_REMOVE_OWNER"
            )

        result = await self._members_collection.delete_one(
            {"groupId": group["_id"], "userId": member_oid}
        )
        if result.deleted_count == 0:
            raise NotFoundException(message="Member not found in group", code="MEMBER_NOT_FOUND")

        logger.info(f"Member {member_id} removed from group {group_id} by {requester_id}")
