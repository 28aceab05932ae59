"""
Configuración centralizada para el sistema de migración legacy → nuevo schema.

ARQUITECTURA:
Dos bases PostgreSQL independientes:
- Origen (OLD_DATABASE_URL): schema legacy (camelCase, ids de 24/32/36 chars)
- Destino (NEW_DATABASE_URL): schema rediseñado (snake_case, ids de 32 hex)

Cada entidad (company, lead, position, contact) tiene un migrador propio en
migrators/<entidad>.py que implementa BaseMigrator.

FLUJO DE MIGRACIÓN:
1. Ejecutar migradores en orden de MIGRATION_ORDER
2. company no depende de nadie (es la fuente de las referencias)
3. lead, position y contact resuelven su compañía en el destino

USO DE LAS FUNCIONES HELPER:
    # Obtener configuración de entidad
    cfg = get_entity_config('contact')
    table = cfg['target_table']  # 'contacts'

    # Validar dependencias antes de migrar
    deps = validate_migration_order('contact')
    if deps:
        print(f"Primero migrar: {deps}")

    # Verificar conexiones antes de cualquier lógica de migración
    old_url, new_url = require_database_urls()
"""

import os
from dotenv import load_dotenv

# Carga las variables del archivo .env en las variables de entorno del sistema
load_dotenv(override=True)

# --- Conexiones (Origen y Destino) ---
# DATABASE_URL queda como fallback común para entornos de una sola base
OLD_DATABASE_URL = os.getenv("OLD_DATABASE_URL") or os.getenv("DATABASE_URL") or ""
NEW_DATABASE_URL = os.getenv("NEW_DATABASE_URL") or os.getenv("DATABASE_URL") or ""

# --- Auditoría ---
# Valor de created_by / last_updated_by / deleted_by en el destino
MIGRATION_USER = "migration_script"
# Actor usado por las corridas de prueba (--test); cleanup_test_data.py lo busca
TEST_MIGRATION_USER = "test_script"

# --- Configuración de Migración ---
PROGRESS_EVERY = 10  # Línea de progreso cada N registros
FAILURE_SAMPLE_SIZE = 5  # Fallos de ejemplo en el reporte final
SAMPLE_SIZE = 1  # Registros por entidad en corridas de prueba

# Dominio para emails placeholder cuando no hay compañía resuelta
PLACEHOLDER_EMAIL_DOMAIN = "placeholder.invalid"

# --- Configuración por Entidad ---
# Cada entidad define:
# - source_table: Tabla legacy (solo lectura)
# - target_table: Tabla destino
# - page_size: Tamaño de página para skip/take sobre el origen
# - natural_key: Columna única de negocio (idempotencia adicional al id)
# - depends_on: Entidades que DEBEN migrarse antes (por referencias)
# - description: Descripción de negocio

ENTITIES = {
    "company": {
        "source_table": "companies",
        "target_table": "companies",
        "page_size": 50,
        "natural_key": "domain",
        "depends_on": [],
        "description": "Compañías con payload JSON (raw_body) y estado comercial",
    },
    "lead": {
        "source_table": "leads",
        "target_table": "leads",
        "page_size": 50,
        "natural_key": "email",
        "depends_on": ["company"],  # company_id → companies.id
        "description": "Leads de la cola de trabajo, más un lead placeholder por compañía",
    },
    "position": {
        "source_table": "positions",
        "target_table": "positions",
        "page_size": 100,
        "natural_key": None,
        "depends_on": ["company"],  # company_id → companies.id, job_role_id → job_roles.id
        "description": "Posiciones abiertas con rol normalizado (job_roles)",
    },
    "contact": {
        "source_table": "contacts",
        "target_table": "contacts",
        "page_size": 50,  # Lotes chicos para aislar mejor los errores
        "natural_key": None,
        "depends_on": ["company"],  # company_id → companies.id, email_status
        "description": "Contactos de compañías con estado de email",
    },
}

# --- Orden de Migración ---
# Derivado de las dependencias declaradas en ENTITIES.
MIGRATION_ORDER = [
    "company",  # Sin dependencias
    "lead",  # Depende de company
    "position",  # Depende de company
    "contact",  # Depende de company
]

# --- Tablas de lookup (enumeraciones compartidas) ---
# Nunca se eliminan durante la migración ni en la limpieza de pruebas.
LOOKUP_TABLES = [
    "company_statuses",
    "lead_statuses",
    "contact_email_statuses",
    "job_roles",
]


# --- Funciones Helper ---


def get_entity_config(entity_name: str) -> dict:
    """
    Obtiene la configuración de una entidad por nombre.

    Args:
        entity_name: Nombre de la entidad (ej: 'company')

    Returns:
        dict: Configuración con keys source_table, target_table, page_size,
              natural_key, depends_on, description

    Raises:
        KeyError: Si la entidad no está configurada

    Ejemplo:
        >>> get_entity_config('position')['page_size']
        100
    """
    if entity_name not in ENTITIES:
        available = ", ".join(ENTITIES.keys())
        raise KeyError(
            f"Entidad '{entity_name}' no está configurada.\n"
            f"Entidades disponibles: {available}"
        )
    return ENTITIES[entity_name]


def validate_migration_order(entity_name: str) -> list:
    """
    Retorna las entidades que deben migrarse antes que la indicada.

    Ejemplo:
        >>> validate_migration_order('lead')
        ['company']
        >>> validate_migration_order('company')
        []
    """
    cfg = get_entity_config(entity_name)
    return cfg.get("depends_on", [])


def get_target_table(entity_name: str) -> str:
    """Helper de conveniencia para acceso directo a la tabla destino."""
    return get_entity_config(entity_name)["target_table"]


def require_database_urls() -> tuple:
    """
    Verifica que ambas cadenas de conexión estén definidas.

    Se llama una sola vez al inicio del proceso, antes de cualquier lógica
    de migración.

    Returns:
        tuple: (OLD_DATABASE_URL, NEW_DATABASE_URL)

    Raises:
        RuntimeError: Si falta alguna de las dos
    """
    missing = []
    if not OLD_DATABASE_URL:
        missing.append("OLD_DATABASE_URL")
    if not NEW_DATABASE_URL:
        missing.append("NEW_DATABASE_URL")

    if missing:
        raise RuntimeError(
            f"Faltan variables de conexión: {', '.join(missing)}.\n"
            f"Definirlas en el entorno o en el archivo .env"
        )
    return OLD_DATABASE_URL, NEW_DATABASE_URL
