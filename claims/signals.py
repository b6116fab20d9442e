"""Signal handlers for claims."""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import UserProfile

User = get_user_model()


@receiver(post_save, sender=User)
def create_user_profile(sender, instance: User, created: bool, **kwargs) -> None:
    """Ensure every user has a workflow profile, defaulting to the lecturer role."""
    if created:
        UserProfile.ensure_for_user(instance)
