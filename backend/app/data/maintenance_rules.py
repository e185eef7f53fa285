"""Default fleet maintenance policy, seeded into an empty rules table."""

ALL_FUEL_TYPES = ["gasoline", "diesel", "electric", "hybrid"]

DEFAULT_MAINTENANCE_RULES = [
    {
        "name": "Tire inspection",
        "description": "Check tire wear, pressure and alignment",
        "fuel_types": ALL_FUEL_TYPES,
        "interval_unit": "distance",
        "interval_value": 10000,
    },
    {
        "name": "Gasoline/diesel service",
        "description": "Oil and filter change, fluid levels, general inspection",
        "fuel_types": ["gasoline", "diesel"],
        "interval_unit": "distance",
        "interval_value": 15000,
    },
    {
        "name": "Annual electric service",
        "description": "Battery health check, cooling circuit, brakes and software updates",
        "fuel_types": ["electric"],
        "interval_unit": "time",
        "interval_value": 12,
    },
    {
        "name": "Hybrid service",
        "description": "Engine oil, hybrid battery check and regenerative braking inspection",
        "fuel_types": ["hybrid"],
        "interval_unit": "distance",
        "interval_value": 15000,
    },
    {
        "name": "Brake inspection",
        "description": "Pads, discs and brake fluid",
        "fuel_types": ALL_FUEL_TYPES,
        "interval_unit": "distance",
        "interval_value": 30000,
    },
]
