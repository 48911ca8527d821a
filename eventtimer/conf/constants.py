TOML_CONFIG_ID = "eventtimer"
ENV_PREFIX = "EVENTTIMER"
ENV_SEPARATOR = "__"
ENV_FILEPATH = "EVENTTIMER__FILEPATH"
IGNORE_CLASS_NAME_SUBSTR = "Config"
