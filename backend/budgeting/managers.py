# budgeting/managers.py
from django.db import models


class OwnerScopedManager(models.Manager):
    def for_owner(self, owner, active_only=False):
        qs = self.filter(owner=owner)
        if active_only:
            qs = qs.filter(is_active=True)
        return qs
