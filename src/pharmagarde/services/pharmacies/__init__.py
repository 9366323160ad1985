"""Pharmacy service helpers."""

from .service import AdminListing, AdminPharmacy, PharmacyDetail, PharmacyService, can_manage

__all__ = ["AdminListing", "AdminPharmacy", "PharmacyDetail", "PharmacyService", "can_manage"]
