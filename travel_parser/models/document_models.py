from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional, Type

DocumentType = Literal["housing", "transportation", "unknown"]
TransportationType = Literal["flight", "train", "bus", "car_rental", "taxi", "other"]

DOCUMENT_TYPES = ("housing", "transportation", "unknown")


class BaseTravelDocument(BaseModel):
    """Fields shared by every booking document.

    Every field is optional: extraction fills a best-effort subset and an
    absent field is never an error. Keys unknown to the schema are dropped.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    document_date: Optional[str] = None
    currency: Optional[str] = None
    total_amount: Optional[float] = None
    vendor_name: Optional[str] = None
    vendor_address: Optional[str] = None
    confirmation_number: Optional[str] = None


class HousingDocument(BaseTravelDocument):
    property_name: Optional[str] = None
    property_address: Optional[str] = None
    check_in_date: Optional[str] = None
    check_out_date: Optional[str] = None
    number_of_nights: Optional[int] = None
    number_of_guests: Optional[int] = None
    room_type: Optional[str] = None
    amenities: Optional[List[str]] = None
    cancellation_policy: Optional[str] = None
    taxes_and_fees: Optional[float] = None
    guest_names: Optional[List[str]] = None


class TransportationDocument(BaseTravelDocument):
    transportation_type: Optional[TransportationType] = None
    departure_location: Optional[str] = None
    arrival_location: Optional[str] = None
    departure_date_time: Optional[str] = None
    arrival_date_time: Optional[str] = None
    carrier_name: Optional[str] = None
    flight_number: Optional[str] = None
    seat_number: Optional[str] = None
    passenger_names: Optional[List[str]] = None
    baggage_allowance: Optional[str] = None
    ticket_class: Optional[str] = None


DOCUMENT_SCHEMAS: Dict[str, Type[BaseTravelDocument]] = {
    "housing": HousingDocument,
    "transportation": TransportationDocument,
}


def get_schema(document_type: str) -> Type[BaseTravelDocument]:
    """Return the schema class for a known document type"""
    schema = DOCUMENT_SCHEMAS.get(document_type)
    if schema is None:
        raise ValueError(f"No schema registered for document type: {document_type}")
    return schema


def describe_schema(schema: Type[BaseTravelDocument]) -> str:
    """Render the schema's fields as a bullet list for prompt guidance"""
    properties = schema.model_json_schema(by_alias=True).get("properties", {})
    lines = []
    for name, field_schema in properties.items():
        lines.append(f"- {name}: {_describe_type(field_schema)} (optional)")
    return "\n".join(lines)


def _describe_type(field_schema: Dict[str, Any]) -> str:
    # Optional[X] renders as anyOf [X, null]
    options = [s for s in field_schema.get("anyOf", [field_schema]) if s.get("type") != "null"]
    if not options:
        return "any"
    option = options[0]
    if "enum" in option:
        return " | ".join(f'"{value}"' for value in option["enum"])
    if option.get("type") == "array":
        return f"array of {option.get('items', {}).get('type', 'any')}"
    return option.get("type", "any")


def validate_document(document_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate extracted data against the document type's schema.

    Returns the schema-conformant payload keyed by camelCase field names, with
    null fields removed. Raises pydantic.ValidationError on shape mismatch.
    """
    schema = get_schema(document_type)
    document = schema.model_validate(data)
    return document.model_dump(by_alias=True, exclude_none=True)
