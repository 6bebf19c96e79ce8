"""
Resource Eligibility Checker.

Pure checks gating resource assignment: license class against vehicle
category, driver license validity and vehicle documentation. None of these
touch availability flags.
"""

import re
from datetime import date
from typing import List, Optional

from transport_backend.app.core.config import settings
from transport_backend.app.core.exceptions import EligibilityError
from transport_backend.app.models.fleet_enums import LicenseClass, VehicleCategory

_ALL_CATEGORIES = frozenset(VehicleCategory)

LICENSE_MATRIX = {
    LicenseClass.A1: frozenset({VehicleCategory.MOTORCYCLE}),
    LicenseClass.A2: frozenset({VehicleCategory.MOTORCYCLE}),
    LicenseClass.B1: frozenset({VehicleCategory.CAR, VehicleCategory.PICKUP}),
    LicenseClass.B2: _ALL_CATEGORIES - {VehicleCategory.MOTORCYCLE},
    LicenseClass.B3: _ALL_CATEGORIES,
    LicenseClass.C1: frozenset({VehicleCategory.TAXI, VehicleCategory.CAR}),
    LicenseClass.C2: frozenset({VehicleCategory.BUS, VehicleCategory.TRUCK, VehicleCategory.VAN}),
    LicenseClass.C3: frozenset({VehicleCategory.BUS, VehicleCategory.TRUCK, VehicleCategory.VAN}),
}

LICENSE_NUMBER_PATTERN = re.compile(r"^[A-Z0-9]{8,15}$")


def can_drive(license_class: LicenseClass, category: VehicleCategory) -> bool:
    return category in LICENSE_MATRIX.get(license_class, frozenset())


def license_number_valid(license_number: Optional[str]) -> bool:
    return bool(license_number) and LICENSE_NUMBER_PATTERN.match(license_number) is not None


def driver_license_valid(driver, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return license_number_valid(driver.license_number) and driver.license_expiry > today


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:  # Feb 29
        return day.replace(year=day.year - years, day=28)


def vehicle_documents_valid(vehicle, today: Optional[date] = None) -> bool:
    today = today or date.today()
    oldest_inspection = _years_before(today, settings.inspection_validity_years)
    return vehicle.insurance_expiry_date >= today and vehicle.last_inspection_date >= oldest_inspection


def eligibility_failures(driver, vehicle, today: Optional[date] = None) -> List[str]:
    """Every failed check for pairing ``driver`` with ``vehicle``."""
    today = today or date.today()
    failures = []
    if not can_drive(driver.license_class, vehicle.category):
        failures.append(
            f"License class {driver.license_class.value} cannot drive {vehicle.category.value}"
        )
    if not license_number_valid(driver.license_number):
        failures.append(f"License number {driver.license_number!r} is malformed")
    if driver.license_expiry <= today:
        failures.append(f"Driver license expired on {driver.license_expiry.isoformat()}")
    if vehicle.insurance_expiry_date < today:
        failures.append(f"Vehicle insurance expired on {vehicle.insurance_expiry_date.isoformat()}")
    if vehicle.last_inspection_date < _years_before(today, settings.inspection_validity_years):
        failures.append(f"Vehicle inspection from {vehicle.last_inspection_date.isoformat()} is out of date")
    return failures


def check_assignment(driver, vehicle, today: Optional[date] = None) -> None:
    """Raise EligibilityError unless ``driver`` may take ``vehicle`` out."""
    failures = eligibility_failures(driver, vehicle, today)
    if failures:
        raise EligibilityError(failures)
