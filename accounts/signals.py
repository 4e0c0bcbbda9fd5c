from django.db.models.signals import post_migrate
from django.dispatch import receiver
import logging

logger = logging.getLogger("accounts")

DEFAULT_ROLES = [
    {"name": "admin", "description": "Back office administrator with full access"},
    {"name": "agent", "description": "Travel agent selling tickets at a discount"},
    {"name": "consultant", "description": "Travel consultant selling tickets at a discount"},
]


@receiver(post_migrate)
def create_default_roles(sender, **kwargs):
    """
    Create the admin, agent and consultant roles after migration.
    """
    if sender.name != "accounts":
        return

    from .models import Role

    for role_data in DEFAULT_ROLES:
        _, created = Role.objects.get_or_create(
            name=role_data["name"],
            defaults={"description": role_data["description"]},
        )
        if created:
            logger.info(f"Role created: {role_data['name']}")
