"""
Bridge data structures
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class ResourceType(Enum):
    """CLIP v2 resource types, used only as URL path segments"""
    BRIDGE = "bridge"
    BRIDGE_HOME = "bridge_home"
    DEVICE = "device"
    LIGHT = "light"
    GROUPED_LIGHT = "grouped_light"
    ROOM = "room"
    ZONE = "zone"
    SCENE = "scene"
    SMART_SCENE = "smart_scene"
    MOTION = "motion"
    BUTTON = "button"
    TEMPERATURE = "temperature"
    LIGHT_LEVEL = "light_level"
    DEVICE_POWER = "device_power"
    ZIGBEE_CONNECTIVITY = "zigbee_connectivity"
    ENTERTAINMENT = "entertainment"
    ENTERTAINMENT_CONFIGURATION = "entertainment_configuration"
    BEHAVIOR_SCRIPT = "behavior_script"
    BEHAVIOR_INSTANCE = "behavior_instance"
    GEOFENCE_CLIENT = "geofence_client"
    GEOLOCATION = "geolocation"
    HOMEKIT = "homekit"
    MATTER = "matter"


def extract_data_list(payload: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return the `data` list of a CLIP v2 response envelope"""
    if not isinstance(payload, dict):
        return []
    data = payload.get('data')
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


@dataclass
class Bridge:
    """A paired bridge - `id` comes from the bridge's own resource description"""
    id: str
    ip_address: Optional[str] = None
    application_key: Optional[str] = None
    client_key: Optional[str] = None
    bridge_id: Optional[str] = None
    time_zone: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "Bridge":
        """Build from a CLIP v2 envelope or a bare bridge resource"""
        if 'data' in payload:
            items = extract_data_list(payload)
            resource = items[0] if items else {}
        else:
            resource = payload

        time_zone = resource.get('time_zone')
        if isinstance(time_zone, dict):
            time_zone = time_zone.get('time_zone')

        return cls(
            id=str(resource.get('id') or ''),
            bridge_id=resource.get('bridge_id'),
            time_zone=time_zone,
            raw=dict(resource),
        )

    def copy_with(self, **changes) -> "Bridge":
        return replace(self, **changes)

    def to_json(self) -> Dict[str, Any]:
        """Dict form handed to the external persistence layer"""
        return {
            'id': self.id,
            'ip_address': self.ip_address,
            'application_key': self.application_key,
            'client_key': self.client_key,
            'bridge_id': self.bridge_id,
            'time_zone': self.time_zone,
            'raw': self.raw,
        }

    @classmethod
    def from_storage(cls, data: Dict[str, Any]) -> "Bridge":
        """Inverse of to_json"""
        return cls(
            id=data.get('id', ''),
            ip_address=data.get('ip_address'),
            application_key=data.get('application_key'),
            client_key=data.get('client_key'),
            bridge_id=data.get('bridge_id'),
            time_zone=data.get('time_zone'),
            raw=data.get('raw') or {},
        )
