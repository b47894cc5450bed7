import enum


# ============================================================================
# CONNECTIONS
# ============================================================================

class DataSourceType(str, enum.Enum):
    """Data source adapter types supported by the backend"""
    POSTGRESQL = "postgresql"
    MSSQL = "mssql"
    MYSQL = "mysql"
    GOOGLE_SHEETS = "google_sheets"
    AWS_RDS_POSTGRES = "aws_rds_postgres"
    AWS_RDS_MYSQL = "aws_rds_mysql"
    AWS_RDS_MSSQL = "aws_rds_mssql"
    SUPABASE = "supabase"
    MONGODB = "mongodb"
    SQLITE = "sqlite"


class DataSourceCategory(str, enum.Enum):
    """Registry grouping of data source types"""
    DATABASE = "database"
    CLOUD = "cloud"
    FILE = "file"
    API = "api"


class FieldType(str, enum.Enum):
    """Connection form field input kinds"""
    TEXT = "text"
    NUMBER = "number"
    PASSWORD = "password"
    BOOLEAN = "boolean"
    SELECT = "select"
    TEXTAREA = "textarea"


class DBType(str, enum.Enum):
    """Side of the pipeline a connection serves"""
    SOURCE = "source"
    DESTINATION = "destination"


# ============================================================================
# MAPPINGS
# ============================================================================

class SyncType(str, enum.Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


class JoinType(str, enum.Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class ColumnTransform(str, enum.Enum):
    """Per-column value transforms applied by the backend"""
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    TRIM = "trim"


class MappingDraftState(str, enum.Enum):
    """Progress of a mapping draft towards submission"""
    EMPTY = "empty"
    TABLES_SELECTED = "tables_selected"
    COLUMNS_CONFIGURED = "columns_configured"
    JOINS_CONFIGURED = "joins_configured"
    SUBMITTABLE = "submittable"


# ============================================================================
# BULK TRANSFER
# ============================================================================

class TransferStatus(str, enum.Enum):
    """Backend-reported bulk transfer status"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    
    @property
    def is_terminal(self) -> bool:
        return self in (TransferStatus.COMPLETED, TransferStatus.FAILED)


class TableTransferStatus(str, enum.Enum):
    """Per-table sub-status within a bulk transfer"""
    PENDING = "pending"
    CREATING_TABLE = "creating_table"
    TRANSFERRING_DATA = "transferring_data"
    COMPLETED = "completed"
    FAILED = "failed"


class TransferOperation(str, enum.Enum):
    CREATING_TABLE = "creating_table"
    TRANSFERRING_DATA = "transferring_data"
    COMPLETED = "completed"


class TransferState(str, enum.Enum):
    """Client-side view of a tracked transfer"""
    NOT_STARTED = "not_started"
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# ============================================================================
# LEGACY SYNC
# ============================================================================

class SyncMethod(str, enum.Enum):
    POLLING = "polling"
    REALTIME = "realtime"
    TRIGGER = "trigger"
