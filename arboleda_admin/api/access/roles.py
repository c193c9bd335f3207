"""
ARBOLEDA ADMIN - Role Registry

Predefined roles and their permission grants for the admin panel.
This is the single source of truth for what each role can do.
Roles are built once at startup and never mutated.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping, Optional, Union

from arboleda_admin.exceptions import ConfigurationError


# ============================================================
# Permissions
# ============================================================


class Permission(str, Enum):
    """Known ``<resource>.<action>`` permission tokens."""

    # Reservations
    RESERVAS_CREAR = "reservas.crear"
    RESERVAS_LEER = "reservas.leer"
    RESERVAS_MODIFICAR = "reservas.modificar"
    RESERVAS_ELIMINAR = "reservas.eliminar"
    RESERVAS_CAMBIAR_ESTADO = "reservas.cambiar_estado"
    RESERVAS_ENVIAR_NOTIFICACIONES = "reservas.enviar_notificaciones"
    RESERVAS_EXPORTAR = "reservas.exportar"

    # Menu
    CARTA_CREAR = "carta.crear"
    CARTA_LEER = "carta.leer"
    CARTA_MODIFICAR = "carta.modificar"
    CARTA_ELIMINAR = "carta.eliminar"
    CARTA_GESTIONAR_ETIQUETAS = "carta.gestionar_etiquetas"
    CARTA_VER_ESTADISTICAS = "carta.ver_estadisticas"
    CARTA_EXPORTAR = "carta.exportar"

    # Admin users
    USUARIOS_CREAR = "usuarios.crear"
    USUARIOS_LEER = "usuarios.leer"
    USUARIOS_MODIFICAR = "usuarios.modificar"
    USUARIOS_ELIMINAR = "usuarios.eliminar"
    USUARIOS_ASIGNAR_ROLES = "usuarios.asignar_roles"
    USUARIOS_VER_AUDITORIA = "usuarios.ver_auditoria"

    # Reports
    REPORTES_VER_TODOS = "reportes.ver_todos"
    REPORTES_EXPORTAR = "reportes.exportar"
    REPORTES_VER_AUDITORIA = "reportes.ver_auditoria"

    # Settings
    CONFIG_VER = "config.ver"
    CONFIG_MODIFICAR = "config.modificar"
    CONFIG_BACKUP = "config.backup"


PermissionLike = Union[Permission, str]


def as_token(value: Union[Enum, str]) -> str:
    """Plain string form of a permission or role token."""
    if isinstance(value, Enum):
        return value.value
    return value


# ============================================================
# Roles
# ============================================================


class RoleId(str, Enum):
    """Identifiers of the predefined roles."""

    SUPER_ADMIN = "super_admin"
    ADMIN_RESERVAS = "admin_reservas"
    ADMIN_CARTA = "admin_carta"
    RECEPCIONISTA = "recepcionista"


@dataclass(frozen=True)
class Role:
    """A named, predefined bundle of permission grants."""

    id: str
    name: str
    description: str
    color: str
    is_base_role: bool
    permissions: FrozenSet[str]

    def grants(self, permission: PermissionLike) -> bool:
        """Check if the role's base grant set contains a permission."""
        return as_token(permission) in self.permissions

    def to_dict(self) -> dict:
        """Convert to dictionary for rendering."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "is_base_role": self.is_base_role,
            "permissions": sorted(self.permissions),
        }


def _role(
    role_id: RoleId,
    name: str,
    description: str,
    color: str,
    permissions: Iterable[Permission],
) -> Role:
    return Role(
        id=role_id.value,
        name=name,
        description=description,
        color=color,
        is_base_role=True,
        permissions=frozenset(p.value for p in permissions),
    )


ROLE_DEFINITIONS: tuple[Role, ...] = (
    _role(
        RoleId.SUPER_ADMIN,
        "Super Administrador",
        "Acceso total a todas las funcionalidades",
        "#FF6B6B",
        # All permissions
        [*Permission],
    ),
    _role(
        RoleId.ADMIN_RESERVAS,
        "Administrador de Reservas",
        "Gestiona reservas, confirmaciones y estado",
        "#4ECDC4",
        [
            # Reservations (full)
            Permission.RESERVAS_CREAR,
            Permission.RESERVAS_LEER,
            Permission.RESERVAS_MODIFICAR,
            Permission.RESERVAS_ELIMINAR,
            Permission.RESERVAS_CAMBIAR_ESTADO,
            Permission.RESERVAS_ENVIAR_NOTIFICACIONES,
            Permission.RESERVAS_EXPORTAR,

            # Menu (read only)
            Permission.CARTA_LEER,
            Permission.CARTA_VER_ESTADISTICAS,

            # Reports
            Permission.REPORTES_VER_TODOS,
            Permission.REPORTES_EXPORTAR,
        ],
    ),
    _role(
        RoleId.ADMIN_CARTA,
        "Administrador de Carta",
        "Gestiona menú, platos y promociones",
        "#95E1D3",
        [
            # Reservations (read only)
            Permission.RESERVAS_LEER,

            # Menu (full)
            Permission.CARTA_CREAR,
            Permission.CARTA_LEER,
            Permission.CARTA_MODIFICAR,
            Permission.CARTA_ELIMINAR,
            Permission.CARTA_GESTIONAR_ETIQUETAS,
            Permission.CARTA_VER_ESTADISTICAS,
            Permission.CARTA_EXPORTAR,

            # Reports
            Permission.REPORTES_VER_TODOS,
        ],
    ),
    _role(
        RoleId.RECEPCIONISTA,
        "Recepcionista",
        "Solo aceptar y rechazar reservas",
        "#FFE66D",
        [
            # Reservations (accept / reject only)
            Permission.RESERVAS_LEER,
            Permission.RESERVAS_CAMBIAR_ESTADO,
            Permission.RESERVAS_ENVIAR_NOTIFICACIONES,

            # Menu (read only)
            Permission.CARTA_LEER,
        ],
    ),
)


# ============================================================
# Registry
# ============================================================


class RoleRegistry:
    """Immutable lookup table of role id -> Role."""

    def __init__(self, roles: Iterable[Role]):
        table = {}
        for role in roles:
            if role.id in table:
                raise ConfigurationError(f"Duplicate role id: {role.id}")
            table[role.id] = role
        self._roles: Mapping[str, Role] = MappingProxyType(table)

    def get_role(self, role_id: Optional[str]) -> Optional[Role]:
        """Get a role by id, or None if it is not defined."""
        if role_id is None:
            return None
        return self._roles.get(as_token(role_id))

    def list_all_roles(self) -> List[Role]:
        """All roles in definition order."""
        return list(self._roles.values())

    def permissions_of_role(self, role_id: Optional[str]) -> FrozenSet[str]:
        """Permission set of a role; empty for unknown roles."""
        role = self.get_role(role_id)
        return role.permissions if role else frozenset()

    def __contains__(self, role_id: object) -> bool:
        return isinstance(role_id, str) and as_token(role_id) in self._roles

    def __len__(self) -> int:
        return len(self._roles)


@lru_cache(maxsize=1)
def default_registry() -> RoleRegistry:
    """Registry built from the reference role definitions."""
    return RoleRegistry(ROLE_DEFINITIONS)
