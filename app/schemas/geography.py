from pydantic import BaseModel


class PlaceItem(BaseModel):
    """Country, state or city dropdown entry; ids are the dataset's integers."""
    id: int
    name: str
