import logging

from keitruckhub.models.vehicle_model import VehicleModel
from keitruckhub.store import RecordStore

logger = logging.getLogger(__name__)

STOCK_CATALOG = [
    VehicleModel(id="suzuki", name="Suzuki Carry", year=1999,
                 description="Reliable workhorse with compact size and great utility."),
    VehicleModel(id="honda", name="Honda Acty", year=1997,
                 description="Efficient, lightweight, and versatile for daily tasks."),
    VehicleModel(id="hijet", name="Daihatsu Hijet", year=2001,
                 description="Durable mini truck with plenty of customization options."),
    VehicleModel(id="sambar", name="Subaru Sambar", year=2005,
                 description="Rear-engine layout with great stability and traction."),
]


def seed_catalog_if_empty(store: RecordStore) -> int:
    """Insert the stock models into an empty store. Returns how many were added."""
    if store.count() > 0:
        logger.info("Catalog already has models, skipping seed.")
        return 0

    for model in STOCK_CATALOG:
        store.create(model)
    logger.info("Seeded catalog with %d stock models.", len(STOCK_CATALOG))
    return len(STOCK_CATALOG)
