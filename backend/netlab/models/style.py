from pydantic import BaseModel


class StyleDef(BaseModel):
    palette: dict[str, str] = {}
    default_color: str = "#9E9E9E"
