#!/usr/bin/env python3

import sys
from tools.category_tree import find_orphans
from logger import get_logger

logger = get_logger()


def resolve_category(services, user_id, value, parent_id=None):
    """Look up a category by ID, falling back to its name among siblings."""
    category = services.categories.find(user_id, value)
    if category and category.is_active:
        return category
    return services.categories.find_by_name(user_id, value, parent_id=parent_id)


def _format_goals(category):
    goals = []
    if category.daily_time_goal_minutes:
        goals.append(f"{category.daily_time_goal_minutes}m/day")
    if category.weekly_time_goal_minutes:
        goals.append(f"{category.weekly_time_goal_minutes}m/week")
    return f" [{', '.join(goals)}]" if goals else ""


def cmd_list(args, services):
    """List the category tree for the configured user."""
    user_id = services.config.user_id
    categories = services.categories.find_all(user_id)

    if not categories:
        logger.info("No categories found.")
        logger.info("Use 'python -m cli categories seed' to create the defaults.")
        return

    tree = services.categories.tree(user_id)

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for root in tree:
        logger.info(f"{root.name} {root.color}{_format_goals(root)}  (ID: {root.id})")
        for child in root.children:
            logger.info(f"  └─ {child.name}{_format_goals(child)}  (ID: {child.id})")

    orphans = find_orphans(categories)
    if orphans:
        logger.warning(f"\n{len(orphans)} subcategory(ies) have no active parent:")
        for orphan in orphans:
            logger.warning(f"  {orphan.name} (ID: {orphan.id}, parent: {orphan.parent_id})")

    logger.info("-" * 80)
    logger.info(f"Total categories: {len(categories)}")


def cmd_create(args, services):
    """Create a category, optionally under a parent."""
    user_id = services.config.user_id

    parent_id = None
    if args.parent:
        parent = resolve_category(services, user_id, args.parent)
        if not parent:
            logger.error(f"Parent category '{args.parent}' not found.")
            sys.exit(1)
        parent_id = parent.id

    try:
        category = services.categories.create(
            user_id,
            args.name,
            color=args.color,
            parent_id=parent_id,
            sort_order=args.sort_order,
            daily_time_goal_minutes=args.daily_goal,
            weekly_time_goal_minutes=args.weekly_goal,
            description=args.description,
        )
    except ValueError as e:
        logger.error(f"Error creating category: {e}")
        sys.exit(1)

    logger.info(f"✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    if category.parent_id:
        logger.info(f"  Parent ID: {category.parent_id}")


def cmd_update(args, services):
    """Update fields of an existing category."""
    user_id = services.config.user_id

    category = resolve_category(services, user_id, args.category)
    if not category:
        logger.error(f"Category '{args.category}' not found.")
        sys.exit(1)

    fields = {}
    if args.name is not None:
        fields["name"] = args.name
    if args.color is not None:
        fields["color"] = args.color
    if args.description is not None:
        fields["description"] = args.description
    if args.daily_goal is not None:
        fields["daily_time_goal_minutes"] = args.daily_goal
    if args.weekly_goal is not None:
        fields["weekly_time_goal_minutes"] = args.weekly_goal
    if args.sort_order is not None:
        fields["sort_order"] = args.sort_order
    if args.parent is not None:
        if args.parent.lower() == "none":
            fields["parent_id"] = "none"
        else:
            parent = resolve_category(services, user_id, args.parent)
            if not parent:
                logger.error(f"Parent category '{args.parent}' not found.")
                sys.exit(1)
            fields["parent_id"] = parent.id

    try:
        updated, fields_updated = services.categories.update(
            user_id, category.id, fields
        )
    except ValueError as e:
        logger.error(f"Error updating category: {e}")
        sys.exit(1)

    logger.info(f"✓ Updated '{updated.name}': {', '.join(fields_updated)}")


def cmd_delete(args, services):
    """Delete a category with its subcategories and logged activities."""
    user_id = services.config.user_id

    category = resolve_category(services, user_id, args.category)
    if not category:
        logger.error(f"Category '{args.category}' not found.")
        sys.exit(1)

    logger.info("\nCategory to delete:")
    logger.info(f"  ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info("  Its subcategories and every activity logged on them are deleted too.")

    if not args.yes:
        confirm = (
            input("\nAre you sure you want to delete this category? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    if services.categories.cascade_delete(user_id, category.id):
        logger.info(f"✓ Category '{category.name}' deleted successfully.")
    else:
        logger.error("Failed to delete category.")
        sys.exit(1)


def cmd_deactivate(args, services):
    """Hide a category and its subcategories without deleting history."""
    user_id = services.config.user_id

    category = resolve_category(services, user_id, args.category)
    if not category:
        logger.error(f"Category '{args.category}' not found.")
        sys.exit(1)

    count = services.categories.deactivate(user_id, category.id)
    logger.info(f"✓ Deactivated {count} category(ies)")


def cmd_seed(args, services):
    """Create the default categories."""
    user_id = services.config.user_id

    logger.info("\nSeeding default categories")
    logger.info("=" * 80)

    created, skipped = services.categories.seed_defaults(user_id)

    logger.info("\nSeeding complete!")
    logger.info(f"Created: {created}")
    logger.info(f"Skipped: {skipped}")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, update and delete activity categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser("list", help="Show the category tree")
    list_parser.set_defaults(func=cmd_list)

    # categories create
    create_parser = categories_subparsers.add_parser("create", help="Create a category")
    create_parser.add_argument("name", help="Category name")
    create_parser.add_argument("--parent", help="Parent category ID or name")
    create_parser.add_argument("--color", default="#10B981", help="Hex color")
    create_parser.add_argument("--description")
    create_parser.add_argument("--daily-goal", type=int, help="Daily goal in minutes")
    create_parser.add_argument("--weekly-goal", type=int, help="Weekly goal in minutes")
    create_parser.add_argument("--sort-order", type=int, default=0)
    create_parser.set_defaults(func=cmd_create)

    # categories update
    update_parser = categories_subparsers.add_parser("update", help="Update a category")
    update_parser.add_argument("category", help="Category ID or name")
    update_parser.add_argument("--name")
    update_parser.add_argument("--color")
    update_parser.add_argument("--description")
    update_parser.add_argument("--daily-goal", type=int)
    update_parser.add_argument("--weekly-goal", type=int)
    update_parser.add_argument("--sort-order", type=int)
    update_parser.add_argument(
        "--parent", help="New parent ID or name, or 'none' to make it top-level"
    )
    update_parser.set_defaults(func=cmd_update)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category and everything logged on it"
    )
    delete_parser.add_argument("category", help="Category ID or name")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)

    # categories deactivate
    deactivate_parser = categories_subparsers.add_parser(
        "deactivate", help="Hide a category and its subcategories"
    )
    deactivate_parser.add_argument("category", help="Category ID or name")
    deactivate_parser.set_defaults(func=cmd_deactivate)

    # categories seed
    seed_parser = categories_subparsers.add_parser(
        "seed", help="Create the default categories"
    )
    seed_parser.set_defaults(func=cmd_seed)
