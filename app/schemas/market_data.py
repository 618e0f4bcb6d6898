from pydantic import BaseModel, ConfigDict


class MarketData(BaseModel):
    model_config = ConfigDict(extra="allow")

    symbol: str
    exchange: str
    price: float
    timestamp: int


class ErrorResponse(BaseModel):
    error: str
