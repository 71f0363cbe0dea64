# app/services/rbac.py
"""
Role-based access to portal routes and navigation.
"""
from typing import Dict, List, Optional

ROLES = ("admin", "staff", "student")

ROUTES = {
    "DASHBOARD": "/",
    "CATEGORIES_LIST": "/service-categories",
    "CATEGORIES_CREATE": "/service-categories/new",
    "CATEGORIES_EDIT": "/service-categories/edit",
    "CATEGORIES_VIEW": "/service-categories/view",
    "SERVICES_LIST": "/services",
    "SERVICES_CREATE": "/services/new",
    "SERVICES_EDIT": "/services/edit",
    "SERVICE_REQUESTS": "/service-requests",
    "STUDENT_PORTAL": "/student",
    "STUDENT_DATA": "/myjkkn/students",
    "STAFF_DATA": "/myjkkn/staff",
    "PROGRAMS": "/programs",
    "INSTITUTIONS": "/institutions",
    "DEPARTMENTS": "/departments",
    "USER_MANAGEMENT": "/user-management",
    "ANALYTICS": "/analytics",
    "NOTIFICATIONS": "/notifications",
    "PROFILE": "/profile",
    "LOGOUT": "/logout",
}

_STAFF_ROUTES = [
    "DASHBOARD",
    "CATEGORIES_LIST", "CATEGORIES_CREATE", "CATEGORIES_EDIT", "CATEGORIES_VIEW",
    "SERVICES_LIST", "SERVICES_CREATE", "SERVICES_EDIT",
    "SERVICE_REQUESTS",
    "PROFILE", "LOGOUT",
]

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "admin": list(ROUTES.values()),
    "staff": [ROUTES[name] for name in _STAFF_ROUTES],
    "student": [ROUTES["STUDENT_PORTAL"], ROUTES["PROFILE"], ROUTES["LOGOUT"]],
}

# sidebar entries, in display order
NAVIGATION_ITEMS = [
    {"href": ROUTES["DASHBOARD"], "label": "Dashboard", "icon": "LayoutDashboardIcon",
     "section": "Main Menu", "required_roles": ["admin", "staff"]},
    {"href": ROUTES["CATEGORIES_CREATE"], "label": "Create Categories", "icon": "FolderPlusIcon",
     "section": "Categories", "required_roles": ["admin", "staff"]},
    {"href": ROUTES["CATEGORIES_LIST"], "label": "Categories List", "icon": "FoldersIcon",
     "section": "Categories", "required_roles": ["admin", "staff"]},
    {"href": ROUTES["SERVICES_CREATE"], "label": "Create Services", "icon": "FilePlusIcon",
     "section": "Services", "required_roles": ["admin", "staff"]},
    {"href": ROUTES["SERVICES_LIST"], "label": "Services List", "icon": "FileTextIcon",
     "section": "Services", "required_roles": ["admin", "staff"]},
    {"href": ROUTES["STUDENT_PORTAL"], "label": "Services Portal", "icon": "GraduationCapIcon",
     "section": "Student Portal", "required_roles": ["student"]},
    {"href": ROUTES["SERVICE_REQUESTS"], "label": "Service Requests", "icon": "ClipboardListIcon",
     "section": "Other", "required_roles": ["admin", "staff"]},
    {"href": ROUTES["STUDENT_PORTAL"], "label": "Student Portal", "icon": "GraduationCapIcon",
     "section": "Student Portal", "required_roles": ["admin"]},
    {"href": ROUTES["STUDENT_DATA"], "label": "Student Data", "icon": "UsersIcon",
     "section": "Other", "required_roles": ["admin"]},
    {"href": ROUTES["STAFF_DATA"], "label": "Staff Data", "icon": "UserCheckIcon",
     "section": "Other", "required_roles": ["admin"]},
    {"href": ROUTES["PROGRAMS"], "label": "Programs", "icon": "GraduationCapIcon",
     "section": "Other", "required_roles": ["admin"]},
    {"href": ROUTES["INSTITUTIONS"], "label": "Institutions", "icon": "BuildingIcon",
     "section": "Other", "required_roles": ["admin"]},
    {"href": ROUTES["DEPARTMENTS"], "label": "Departments", "icon": "GraduationCapIcon",
     "section": "Other", "required_roles": ["admin"]},
    {"href": ROUTES["USER_MANAGEMENT"], "label": "User Management", "icon": "UsersIcon",
     "section": "Administration", "required_roles": ["admin"]},
    {"href": ROUTES["ANALYTICS"], "label": "Analytics", "icon": "BarChartIcon",
     "section": "Administration", "required_roles": ["admin"]},
    {"href": ROUTES["NOTIFICATIONS"], "label": "Notifications", "icon": "BellIcon",
     "section": "Administration", "required_roles": ["admin"]},
    {"href": ROUTES["PROFILE"], "label": "My Profile", "icon": "UserIcon",
     "section": "Account", "required_roles": ["admin", "staff", "student"]},
    {"href": ROUTES["LOGOUT"], "label": "Logout", "icon": "LogOutIcon",
     "section": "Account", "required_roles": ["admin", "staff", "student"]},
]


def _route_matches(route: str, allowed: str) -> bool:
    # "/" only grants the dashboard itself, not every path under it
    if route == allowed:
        return True
    if allowed == "/":
        return False
    return route.startswith(allowed.rstrip("/") + "/")


def has_access(role: Optional[str], route: str) -> bool:
    if role not in ROLE_PERMISSIONS:
        return False
    return any(_route_matches(route, allowed) for allowed in ROLE_PERMISSIONS[role])


def get_accessible_nav_items(role: Optional[str]) -> List[Dict]:
    if not role:
        return []
    return [item for item in NAVIGATION_ITEMS if role in item["required_roles"]]


def get_default_route(role: Optional[str]) -> str:
    if role == "student":
        return ROUTES["STUDENT_PORTAL"]
    return ROUTES["DASHBOARD"]


def get_redirect_path(role: Optional[str], current_path: str) -> Optional[str]:
    """None when the role may stay on current_path."""
    if not role:
        return "/login"
    if has_access(role, current_path):
        return None
    return get_default_route(role)
