"""Vehicles are not a separate upstream list; they are derived from driver rows."""

from typing import Dict, List

from app.schemas.erp import Driver, Vehicle, VehicleDriver


def as_vehicle_driver(driver: Driver) -> VehicleDriver:
    return VehicleDriver(
        id=driver.id,
        full_name=driver.full_name,
        phone=driver.phone,
        id_card=driver.id_card,
        vehicle_plate=driver.vehicle_plate,
    )


def group_vehicles(drivers: List[Driver]) -> List[Vehicle]:
    """One vehicle per distinct plate, sorted by plate. Drivers without a plate are skipped."""
    vehicles: Dict[str, Vehicle] = {}
    for driver in drivers:
        plate = driver.vehicle_plate.strip()
        if not plate:
            continue
        if plate not in vehicles:
            vehicles[plate] = Vehicle(
                id=driver.vehicle_id or plate,
                vehicle_plate=plate,
                transport_company_id=driver.transport_company_id,
            )
        vehicles[plate].drivers.append(as_vehicle_driver(driver))
    return [vehicles[plate] for plate in sorted(vehicles)]


def drivers_for_plate(drivers: List[Driver], plate: str) -> List[VehicleDriver]:
    plate = plate.strip()
    return [as_vehicle_driver(driver) for driver in drivers if driver.vehicle_plate.strip() == plate]
