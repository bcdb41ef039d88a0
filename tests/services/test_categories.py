import pytest
import sqlite3
from datetime import datetime

from events import CATEGORY_CHANGED
from models.activity import Activity
from services.categories import CategoryNotFoundError, CategoryValidationError


class TestCategoryService:
    """Tests for CategoryService."""

    def test_create_root_category(self, services):
        """Test creating a top-level category."""
        category = services.categories.create("user-1", "  Faith ", color="#8b5cf6")

        assert category.id
        assert category.name == "Faith"
        assert category.color == "#8B5CF6"
        assert category.level == 0
        assert category.parent_id is None

    def test_create_subcategory(self, services):
        """Test creating a category under a root."""
        parent = services.categories.create("user-1", "Faith")
        child = services.categories.create("user-1", "Prayer", parent_id=parent.id)

        assert child.parent_id == parent.id
        assert child.level == 1

    def test_create_under_leaf_rejected(self, tree, services):
        """Test that a category cannot be nested three levels deep."""
        with pytest.raises(ValueError, match="top-level category"):
            services.categories.create("user-1", "Too deep", parent_id=tree["prayer"].id)

    def test_create_under_other_users_category_rejected(self, tree, services):
        """Test that a parent must belong to the same user."""
        with pytest.raises(ValueError, match="not found or access denied"):
            services.categories.create("user-2", "Mine", parent_id=tree["faith"].id)

    def test_create_invalid_fields(self, services):
        """Test that every validation problem is reported at once."""
        with pytest.raises(CategoryValidationError) as exc_info:
            services.categories.create(
                "user-1", "", color="red", daily_time_goal_minutes=2000
            )

        assert exc_info.value.errors == [
            "Name must be between 1 and 100 characters",
            "Color must be a valid 6-digit hex code (e.g., #FF0000)",
            "Daily time goal must be between 0 and 1440 minutes",
        ]

    def test_find_scoped_to_user(self, tree, services):
        """Test that a category is only visible to its owner."""
        assert services.categories.find("user-1", tree["faith"].id) is not None
        assert services.categories.find("user-2", tree["faith"].id) is None

    def test_find_by_name_case_insensitive(self, tree, services):
        """Test name lookup ignores case and respects the parent."""
        found = services.categories.find_by_name("user-1", "faith")
        assert found.id == tree["faith"].id

        child = services.categories.find_by_name(
            "user-1", "PRAYER", parent_id=tree["faith"].id
        )
        assert child.id == tree["prayer"].id

        assert services.categories.find_by_name("user-1", "Prayer") is None

    def test_find_all_ordered_by_level_then_sort_order(self, tree, services):
        """Test the listing order."""
        names = [c.name for c in services.categories.find_all("user-1")]

        assert names == ["Faith", "Work", "Prayer", "Meeting", "Scripture Study"]

    def test_tree(self, tree, services):
        """Test the nested view of a user's categories."""
        result = services.categories.tree("user-1")

        assert [r.name for r in result] == ["Faith", "Work"]
        assert [c.name for c in result[0].children] == ["Prayer", "Scripture Study"]
        assert [c.name for c in result[1].children] == ["Meeting"]
        assert services.categories.tree("user-2") == []


class TestCategoryUpdate:
    """Tests for CategoryService.update."""

    def test_update_sanitizes_fields(self, tree, services):
        """Test trimming, color normalisation and the changed-field list."""
        category, fields = services.categories.update(
            "user-1",
            tree["faith"].id,
            {"name": "  Spirit ", "color": "#abcdef", "description": " quiet "},
        )

        assert category.name == "Spirit"
        assert category.color == "#ABCDEF"
        assert category.description == "quiet"
        assert fields == ["name", "color", "description"]

    def test_update_validation_errors(self, tree, services):
        """Test that invalid values are rejected before anything is written."""
        with pytest.raises(CategoryValidationError) as exc_info:
            services.categories.update(
                "user-1", tree["faith"].id, {"goal_type": "sometimes", "sort_order": 1000}
            )

        assert "Goal type must be one of: time, boolean, both" in exc_info.value.errors
        assert "Sort order must be between 0 and 999" in exc_info.value.errors

    def test_update_unknown_category(self, services):
        """Test that a missing category raises CategoryNotFoundError."""
        with pytest.raises(CategoryNotFoundError):
            services.categories.update("user-1", "nope", {"name": "X"})

    def test_update_other_users_category(self, tree, services):
        """Test that a user cannot update another user's category."""
        with pytest.raises(CategoryNotFoundError):
            services.categories.update("user-2", tree["faith"].id, {"name": "Mine"})

    def test_update_without_fields(self, tree, services):
        """Test that an update with nothing to change is refused."""
        with pytest.raises(ValueError, match="No valid fields to update"):
            services.categories.update("user-1", tree["faith"].id, {"created_at": "x"})

    def test_move_leaf_to_other_root(self, tree, services):
        """Test re-parenting a subcategory."""
        category, _ = services.categories.update(
            "user-1", tree["meeting"].id, {"parent_id": tree["faith"].id}
        )

        assert category.parent_id == tree["faith"].id
        assert category.level == 1

    def test_parent_none_promotes_to_root(self, tree, services):
        """Test that parent_id "none" makes a subcategory top-level."""
        category, fields = services.categories.update(
            "user-1", tree["meeting"].id, {"parent_id": "none"}
        )

        assert category.parent_id is None
        assert category.level == 0
        assert fields == ["parent_id", "level"]

    def test_parent_must_be_root(self, tree, services):
        """Test that a leaf cannot become the parent."""
        with pytest.raises(ValueError, match="level 0"):
            services.categories.update(
                "user-1", tree["meeting"].id, {"parent_id": tree["prayer"].id}
            )

    def test_root_with_children_cannot_become_leaf(self, tree, services):
        """Test that moving a populated root under another root is refused."""
        with pytest.raises(ValueError, match="subcategories"):
            services.categories.update(
                "user-1", tree["work"].id, {"parent_id": tree["faith"].id}
            )

    def test_cannot_parent_itself(self, tree, services):
        """Test that a category cannot be its own parent."""
        empty_root = services.categories.create("user-1", "Empty")

        with pytest.raises(ValueError, match="own parent"):
            services.categories.update(
                "user-1", empty_root.id, {"parent_id": empty_root.id}
            )

    def test_update_publishes_change(self, tree, services):
        """Test that an update notifies subscribers."""
        received = []
        services.event_bus.subscribe(CATEGORY_CHANGED, received.append)

        services.categories.update("user-1", tree["faith"].id, {"name": "Spirit"})

        assert len(received) == 1
        assert received[0].payload == {
            "user_id": "user-1",
            "category_id": tree["faith"].id,
            "action": "updated",
        }

    def test_update_inactive_root_deactivates_children(self, tree, services):
        """Test that soft-deleting a root through update cascades to its children."""
        category, fields = services.categories.update(
            "user-1", tree["faith"].id, {"is_active": False}
        )

        assert category.is_active is False
        assert fields == ["is_active"]
        names = [c.name for c in services.categories.find_all("user-1")]
        assert names == ["Work", "Meeting"]
        assert len(services.categories.find_all("user-1", active_only=False)) == 5

    def test_update_inactive_leaf_keeps_siblings(self, tree, services):
        """Test that deactivating a leaf touches only that leaf."""
        services.categories.update("user-1", tree["prayer"].id, {"is_active": False})

        names = [c.name for c in services.categories.find_all("user-1")]
        assert names == ["Faith", "Work", "Meeting", "Scripture Study"]


class TestCategoryRemoval:
    """Tests for deactivate and cascade_delete."""

    def test_deactivate_root_hides_children(self, tree, services):
        """Test that deactivating a root also deactivates its children."""
        count = services.categories.deactivate("user-1", tree["faith"].id)

        assert count == 3
        names = [c.name for c in services.categories.find_all("user-1")]
        assert names == ["Work", "Meeting"]
        assert len(services.categories.find_all("user-1", active_only=False)) == 5

    def test_deactivate_unknown(self, services):
        """Test that deactivating nothing returns 0."""
        assert services.categories.deactivate("user-1", "nope") == 0

    def test_cascade_delete_removes_children_and_activities(self, tree, services):
        """Test that a hard delete removes the whole subtree."""
        services.activities.create(
            Activity.create("user-1", tree["prayer"].id, datetime(2024, 3, 6, 7), 30)
        )
        services.activities.create(
            Activity.create("user-1", tree["meeting"].id, datetime(2024, 3, 6, 9), 60)
        )

        assert services.categories.cascade_delete("user-1", tree["faith"].id) is True

        remaining = services.categories.find_all("user-1", active_only=False)
        assert [c.name for c in remaining] == ["Work", "Meeting"]
        activities = services.activities.find_by_user("user-1")
        assert [a.category_id for a in activities] == [tree["meeting"].id]

    def test_cascade_delete_other_user(self, tree, services):
        """Test that another user's category is not deleted."""
        assert services.categories.cascade_delete("user-2", tree["faith"].id) is False
        assert services.categories.find("user-1", tree["faith"].id) is not None

    def test_foreign_key_blocks_plain_delete(self, tree, services):
        """Test that activities cannot be orphaned by a raw delete."""
        services.activities.create(
            Activity.create("user-1", tree["prayer"].id, datetime(2024, 3, 6, 7), 30)
        )

        with services.db_manager.connect() as conn:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute("DELETE FROM categories WHERE id = ?", (tree["prayer"].id,))
            conn.rollback()


class TestSeedDefaults:
    """Tests for CategoryService.seed_defaults."""

    def test_seed_creates_tree(self, services):
        """Test that seeding creates roots with children."""
        created, skipped = services.categories.seed_defaults("user-1")

        assert created > 0
        assert skipped == 0
        tree = services.categories.tree("user-1")
        assert tree[0].name == "Faith"
        assert all(root.children for root in tree)

    def test_seed_twice_skips_existing(self, services):
        """Test that seeding is idempotent."""
        created, _ = services.categories.seed_defaults("user-1")
        created_again, skipped = services.categories.seed_defaults("user-1")

        assert created_again == 0
        assert skipped == created
