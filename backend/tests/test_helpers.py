"""Shared test documents."""

import copy


MINIMAL_DOCUMENT = {
    "author": "Jane Analyst",
    "organisation": "Example Wind Ltd",
    "date": "2024-01-15",
    "version": "1.3.0-2024.03",
    "plant_type": "onshore_wind",
    "plant_name": "North Ridge",
    "license": "CC-BY-4.0",
    "measurement_location": [
        {
            "uuid": "0f8fad5b-d9cb-469f-a165-70867728950e",
            "name": "Mast 1",
            "latitude_ddeg": 0,
            "longitude_ddeg": 12.5,
            "measurement_station_type_id": "mast",
            "logger_main_config": [
                {
                    "logger_oem_id": "NRG Systems",
                    "logger_serial_number": "LOG-1",
                    "date_from": "2024-01-01T00:00:00Z",
                }
            ],
            "measurement_point": [
                {
                    "name": "WS_80m",
                    "measurement_type_id": "wind_speed",
                    "height_m": 80,
                    "height_reference_id": "ground_level",
                    "logger_measurement_config": [
                        {
                            "logger_id": "LOG-1",
                            "date_from": "2024-01-01T00:00:00Z",
                            "column_name": [
                                {"column_name": "WS_80m", "statistic_type_id": "avg", "is_ignored": False}
                            ],
                        }
                    ],
                    "sensor": [
                        {
                            "oem": "Thies",
                            "model": "First Class Advanced",
                            "serial_number": "S-1",
                            "sensor_type_id": "anemometer",
                            "date_from": "2024-01-01T00:00:00Z",
                        }
                    ],
                }
            ],
        }
    ],
}


def minimal_document():
    """A complete document that passes both validators."""
    return copy.deepcopy(MINIMAL_DOCUMENT)


def authoring_document():
    """A complete document as the wizard holds it, with form-only fields."""
    doc = minimal_document()
    doc["startDate"] = "2024-01-01"
    doc["endDate"] = "2024-12-31"
    doc["campaignStatus"] = "live"
    location = doc["measurement_location"][0]
    location["update_at"] = "2024-01-02T10:00:00Z"
    location["notes"] = ""
    point = location["measurement_point"][0]
    point["unit"] = "m/s"
    point["statistic_type_id"] = "avg"
    point["notes"] = None
    return doc
