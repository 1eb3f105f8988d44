from enum import Enum


class BackendType(Enum):
    MONGODB = "mongodb"
    RAVENDB = "ravendb"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    ORACLE = "oracle"
    MSSQL = "mssql"

    def __str__(self) -> str:
        return self.value

    @property
    def is_document_store(self) -> bool:
        return self in (BackendType.MONGODB, BackendType.RAVENDB)


class Operation(Enum):
    CREATE_INSTANCE = "createinstance"
    GET_AVAILABLE_COMMANDS = "getavailablecommands"
    EXECUTE_COMMAND = "executecommand"
    GET_AVAILABLE_STATE_TO_SET = "getavailablestatetoset"
    SET_STATE = "setstate"
    IS_EXIST_PROCESS = "isexistprocess"

    def __str__(self) -> str:
        return self.value


# Designer sub-operation answered with an XML attachment
DESIGNER_DOWNLOAD_SCHEME = "downloadscheme"
DESIGNER_SCHEME_FILENAME = "schema.xml"
DESIGNER_SCHEME_MEDIA_TYPE = "file/xml"

INNER_EXCEPTION_DELIMITER = ". InnerException: "

DEFAULT_CULTURE = "en-US"
