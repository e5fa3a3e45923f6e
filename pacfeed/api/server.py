"""HTTP surface for the display sink."""

from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .router import RequestRouter
from ..errors import ItemNotFoundError, PermissionDeniedError, RefreshError


class Message(BaseModel):
    type: str
    guid: Optional[str] = None
    uri: Optional[str] = None
    forceRefresh: bool = False


class DismissRequest(BaseModel):
    guid: str
    wait: bool = False


class SubscribeRequest(BaseModel):
    url: str
    wait: bool = False


async def _settle(task):
    """Await a routed task, mapping engine errors to HTTP statuses."""
    try:
        return await task
    except ItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except RefreshError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def create_app(router: RequestRouter) -> FastAPI:
    app = FastAPI(title="Pacfeed")

    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers."""
        return {"status": "healthy", "subscriptions": len(router.subscriptions())}

    @app.get("/feeds")
    async def feeds(force_refresh: bool = Query(False, description="Refetch every feed")) -> List[dict]:
        """Merged items, oldest first."""
        try:
            return await router.get_feeds(force_refresh)
        except RefreshError as e:
            raise HTTPException(status_code=502, detail=str(e))

    @app.post("/messages")
    async def messages(message: Message):
        """Message-passing entry point: getFeeds, dismiss, subscribe, unsubscribe."""
        try:
            result = await router.handle(message.model_dump(exclude_none=True))
        except RefreshError as e:
            raise HTTPException(status_code=502, detail=str(e))
        except (KeyError, ValueError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        if result is None:
            return JSONResponse({"status": "accepted"}, status_code=202)
        return result

    @app.post("/dismiss", status_code=202)
    async def dismiss(body: DismissRequest):
        task = router.dismiss(body.guid)
        if body.wait:
            await _settle(task)
            return JSONResponse({"status": "dismissed"})
        return {"status": "accepted"}

    @app.get("/subscriptions")
    async def subscriptions():
        return {"subscriptions": router.subscriptions()}

    @app.post("/subscriptions", status_code=202)
    async def subscribe(body: SubscribeRequest):
        task = router.subscribe(body.url)
        if body.wait:
            outcome = await _settle(task)
            return JSONResponse({"status": outcome.value})
        return {"status": "accepted"}

    @app.delete("/subscriptions", status_code=202)
    async def unsubscribe(url: str = Query(...)):
        router.unsubscribe(url)
        return {"status": "accepted"}

    return app
