"""Referential integrity on delete."""

from movemaster.integrity.references import unassign_driver, unassign_truck, unlink_job

__all__ = ["unassign_driver", "unassign_truck", "unlink_job"]
