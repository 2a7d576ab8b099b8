from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["pages"])


@router.get("/", response_class=PlainTextResponse)
def home():
    return "Gostwear Backend is Live and Ready"
