from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Declares one environment setting a client needs.

    Attributes:
        env_key (str): The raw key, without the "<TYPE>_<ENGINE>_" prefix (e.g. "BASE_URL").
        val_type (str): One of "string", "number", "bool", "list".
        default (str | int | float | bool | list | None): Value used when the variable is unset. None marks the setting as required.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None
