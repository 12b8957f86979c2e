import json
from typing import Any


def serialize_provider_data(provider_data: Any) -> str:
    """Serialize a provider payload to the text stored with the link."""
    return json.dumps(provider_data)
