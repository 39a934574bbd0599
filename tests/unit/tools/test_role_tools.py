"""Tests for the role tools."""

import json

import pytest

from guildkeeper.errors import ErrorKind


def _payload(text: str):
    return json.loads(text.split("\n", 1)[1])


@pytest.fixture
def guild(gateway):
    return gateway.add_server("Guild")


@pytest.mark.asyncio
async def test_list_roles_highest_position_first(gateway, dispatcher, guild):
    """Should list roles from highest position to lowest."""
    gateway.add_role(guild, "@everyone", position=0)
    gateway.add_role(guild, "Admin", position=5, color="#ff0000", permissions=["administrator"])
    gateway.add_role(guild, "Member", position=1, cached=False)

    result = await dispatcher.dispatch("list-roles", {})
    roles = _payload(result.text)

    assert result.text.startswith('Roles in server "Guild":\n')
    assert [r["name"] for r in roles] == ["Admin", "Member", "@everyone"]
    assert roles[0]["color"] == "#ff0000"
    assert roles[0]["permissions"] == ["administrator"]


class TestAssignAndRemove:
    """The assign-role and remove-role tools."""

    @pytest.mark.asyncio
    async def test_assign(self, gateway, dispatcher, guild):
        """Should assign a role by tag and case-insensitive role name."""
        role = gateway.add_role(guild, "Moderator")
        member = gateway.add_member(guild, "alice", tag="alice#0001")

        result = await dispatcher.dispatch("assign-role", {"user": "alice#0001", "role": "moderator"})

        assert result.text == 'Successfully assigned role "Moderator" to user alice#0001 in server "Guild".'
        assert gateway.calls[-1] == ("add_member_role", guild.id, member.id, role.id, "test reason")
        assert gateway.member(guild, member.id).has_role(role.id)

    @pytest.mark.asyncio
    async def test_assign_already_held_role_makes_no_call(self, gateway, dispatcher, guild):
        """Should not call Discord when the member already has the role."""
        role = gateway.add_role(guild, "Moderator")
        gateway.add_member(guild, "alice", roles=(role,))

        result = await dispatcher.dispatch("assign-role", {"user": "alice", "role": "Moderator"})

        assert result.error_kind is ErrorKind.CONFLICT
        assert result.text == 'Tool execution failed: User alice already has the role "Moderator".'
        assert "add_member_role" not in gateway.mutations()

    @pytest.mark.asyncio
    async def test_remove(self, gateway, dispatcher, guild):
        """Should remove a role by member mention and role ID."""
        role = gateway.add_role(guild, "Moderator")
        member = gateway.add_member(guild, "alice", roles=(role,))

        result = await dispatcher.dispatch("remove-role", {"user": f"<@{member.id}>", "role": role.id})

        assert not result.is_error
        assert not gateway.member(guild, member.id).has_role(role.id)

    @pytest.mark.asyncio
    async def test_remove_missing_role_makes_no_call(self, gateway, dispatcher, guild):
        """Should not call Discord when the member lacks the role."""
        gateway.add_role(guild, "Moderator")
        gateway.add_member(guild, "alice")

        result = await dispatcher.dispatch("remove-role", {"user": "alice", "role": "Moderator"})

        assert result.error_kind is ErrorKind.CONFLICT
        assert "remove_member_role" not in gateway.mutations()


class TestCreateRole:
    """The create-role tool."""

    @pytest.mark.asyncio
    async def test_create_with_options(self, gateway, dispatcher, guild):
        """Should create a role with colour, permissions and mentionable."""
        result = await dispatcher.dispatch(
            "create-role",
            {
                "roleName": "Raiders",
                "color": "00ff00",
                "permissions": ["SendMessages", "manage_messages"],
                "mentionable": True,
            },
        )

        assert result.text.startswith('Successfully created role "Raiders" (ID: ')
        assert gateway.calls == [
            ("create_role", guild.id, "Raiders", "#00ff00", ["send_messages", "manage_messages"], True, "test reason")
        ]

    @pytest.mark.asyncio
    async def test_invalid_permission_makes_no_call(self, gateway, dispatcher, guild):
        """Should reject an unknown permission without calling Discord."""
        result = await dispatcher.dispatch("create-role", {"roleName": "Raiders", "permissions": ["teleport"]})

        assert result.error_kind is ErrorKind.VALIDATION
        assert result.text.startswith("Invalid arguments: permissions: Invalid permission name: teleport.")
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, gateway, dispatcher, guild):
        """Should refuse a name that an existing role already has."""
        gateway.add_role(guild, "Raiders")

        result = await dispatcher.dispatch("create-role", {"roleName": "raiders"})

        assert result.error_kind is ErrorKind.CONFLICT
        assert "create_role" not in gateway.mutations()


@pytest.mark.asyncio
async def test_delete_role(gateway, dispatcher, guild):
    """Should delete the role and confirm with its ID."""
    role = gateway.add_role(guild, "Temp")

    result = await dispatcher.dispatch("delete-role", {"role": "Temp"})

    assert result.text == f'Successfully deleted role "Temp" (ID: {role.id}) from server "Guild".'
    assert role.id not in gateway.remote_roles[guild.id]


class TestUpdateRole:
    """The update-role tool."""

    @pytest.mark.asyncio
    async def test_rename_round_trip(self, gateway, dispatcher, guild):
        """Should keep the same role ID through create, rename and delete."""
        async def listed_roles():
            return {r["name"]: r["id"] for r in _payload((await dispatcher.dispatch("list-roles", {})).text)}

        created = await dispatcher.dispatch("create-role", {"roleName": "Team Alpha"})
        assert not created.is_error
        role_id = (await listed_roles())["Team Alpha"]

        updated = await dispatcher.dispatch("update-role", {"role": "Team Alpha", "newName": "Team Bravo"})
        assert updated.text.startswith('Successfully updated role "Team Bravo"')
        assert await listed_roles() == {"Team Bravo": role_id}

        stale = await dispatcher.dispatch("delete-role", {"role": "Team Alpha"})
        assert stale.error_kind is ErrorKind.NOT_FOUND

        deleted = await dispatcher.dispatch("delete-role", {"role": "Team Bravo"})
        assert not deleted.is_error
        assert await listed_roles() == {}

    @pytest.mark.asyncio
    async def test_only_given_fields_change(self, gateway, dispatcher, guild):
        """Should change only the fields that were given."""
        role = gateway.add_role(guild, "Crew", color="#123456", mentionable=False)

        await dispatcher.dispatch("update-role", {"role": "Crew", "newMentionable": True})

        assert gateway.calls[-1] == ("edit_role", guild.id, role.id, None, None, None, True, "test reason")
        assert gateway.remote_roles[guild.id][role.id].color == "#123456"

    @pytest.mark.asyncio
    async def test_rename_onto_existing_name_conflicts(self, gateway, dispatcher, guild):
        """Should refuse a rename onto another role's name."""
        gateway.add_role(guild, "Crew")
        gateway.add_role(guild, "Staff")

        result = await dispatcher.dispatch("update-role", {"role": "Crew", "newName": "staff"})

        assert result.error_kind is ErrorKind.CONFLICT
        assert "edit_role" not in gateway.mutations()

    @pytest.mark.asyncio
    async def test_no_changes_is_a_validation_error(self, gateway, dispatcher, guild):
        """Should reject an update with no changes."""
        gateway.add_role(guild, "Crew")

        result = await dispatcher.dispatch("update-role", {"role": "Crew"})

        assert result.text == "Invalid arguments: No update parameters provided for the role."


@pytest.mark.asyncio
async def test_role_member_count(gateway, dispatcher, guild):
    """Should count only members that hold the role, cached or not."""
    role = gateway.add_role(guild, "Raiders")
    for index in range(5):
        holds = index < 2
        gateway.add_member(guild, f"user{index}", roles=(role,) if holds else (), cached=index % 2 == 0)

    result = await dispatcher.dispatch("get-role-member-count", {"role": "Raiders"})

    assert result.text == 'There are 2 members with the role "Raiders" in server "Guild".'
