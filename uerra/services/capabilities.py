"""
Capability resolution - the single place where a profile role string
becomes something the rest of the code branches on.

Navigation, route gating and the report workflow all consume Capability;
nothing else compares role strings.
"""

from enum import Enum
from typing import Dict, List, Optional


class Capability(str, Enum):
    CITIZEN = "citizen"
    AGENCY = "agency"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


STAFF = frozenset({Capability.AGENCY, Capability.ADMIN, Capability.SUPERADMIN})
ADMINS = frozenset({Capability.ADMIN, Capability.SUPERADMIN})


def resolve_capability(role: Optional[str]) -> Optional[Capability]:
    """
    Map a stored role to its Capability.

    Returns None for missing or unknown roles; callers treat that as
    "no capability".
    """
    if not role or not isinstance(role, str):
        return None
    try:
        return Capability(role.strip().lower())
    except ValueError:
        return None


def is_staff(capability: Optional[Capability]) -> bool:
    return capability in STAFF


def is_admin(capability: Optional[Capability]) -> bool:
    return capability in ADMINS


_COMMON_LINKS = [
    {"label": "Dashboard", "page": "dashboard"},
    {"label": "Reports", "page": "reports"},
]

_LINKS_BY_CAPABILITY: Dict[Capability, List[Dict]] = {
    Capability.CITIZEN: [
        {"label": "My Reports", "page": "myreports"},
    ],
    Capability.AGENCY: [
        {"label": "Assigned Reports", "page": "assigned"},
    ],
    Capability.ADMIN: [
        {"label": "Agency Management", "page": "agency"},
        {"label": "Logs & Analytics", "page": "admin_logs"},
    ],
    Capability.SUPERADMIN: [
        {"label": "Users", "page": "admin_user"},
        {"label": "Agencies", "page": "admin_agency"},
        {"label": "Categories", "page": "admin_category"},
        {"label": "Logs & Analytics", "page": "admin_logs"},
        {"label": "System Info", "page": "admin_info"},
    ],
}


def navigation_for(capability: Optional[Capability]) -> List[Dict]:
    """Sidebar links for a capability (a profile without one only gets the common links)."""
    links = [dict(link) for link in _COMMON_LINKS]
    if capability is not None:
        links.extend(dict(link) for link in _LINKS_BY_CAPABILITY[capability])
    links.append({"label": "Logout", "page": "logout"})
    return links
