import json
from typing import List

from betdesk.constants import k_history, k_last_result
from betdesk.core.config import settings
from betdesk.core.timeutil import fmt
from betdesk.db.redis import r
from betdesk.models.game import GameInstance


def result_item(game: GameInstance) -> dict:
    return {
        "game_id": game.id,
        "game_type": game.game_type,
        "mode": game.mode,
        "title": game.title or "",
        "result": game.result,
        "result_declared_at": fmt(game.result_declared_at),
    }


async def push_result(game: GameInstance) -> None:
    """Newest first, capped at HISTORY_LIMIT, same game never listed twice."""
    h_key = k_history(game.game_type)
    lr_key = k_last_result(game.game_type)
    payload = json.dumps(result_item(game), ensure_ascii=False, sort_keys=True)

    existing = await r.lrange(h_key, 0, settings.HISTORY_LIMIT - 1)
    pipe = r.pipeline()
    for item in existing:
        try:
            if json.loads(item).get("game_id") == game.id:
                pipe.lrem(h_key, 0, item)
        except ValueError:
            continue
    pipe.lpush(h_key, payload)
    pipe.ltrim(h_key, 0, settings.HISTORY_LIMIT - 1)
    pipe.set(lr_key, payload)
    await pipe.execute()


async def read_history(game_type: str, limit: int = 30) -> List[dict]:
    raw = await r.lrange(k_history(game_type), 0, limit - 1)
    items = []
    for s in raw:
        try:
            items.append(json.loads(s))
        except ValueError:
            continue
    return items


async def read_last(game_type: str) -> dict:
    lr = await r.get(k_last_result(game_type))
    if not lr:
        return {}
    try:
        return json.loads(lr)
    except ValueError:
        return {"raw": lr}


async def rebuild_history(game_type: str, games: List[GameInstance]) -> None:
    """``games`` oldest first; LPUSH leaves the list newest first."""
    h_key = k_history(game_type)
    lr_key = k_last_result(game_type)
    pipe = r.pipeline()
    pipe.delete(h_key)
    payload = None
    for g in games:
        payload = json.dumps(result_item(g), ensure_ascii=False, sort_keys=True)
        pipe.lpush(h_key, payload)
    if payload:
        pipe.set(lr_key, payload)
    await pipe.execute()
