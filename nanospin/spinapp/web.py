from __future__ import annotations

from pathlib import Path
from typing import Callable

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from spinapp.chat import ChatMessage
from spinapp.nano import format_balance
from spinapp.security import verify_admin_token
from spinapp.state import SharedRaffle
from spinapp.time_utils import fmt_countdown, now as monotonic_now

ASSETS = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(ASSETS))


def create_app(
    shared: SharedRaffle,
    admin_secret: str,
    clock: Callable[[], float] = monotonic_now,
) -> FastAPI:
    app = FastAPI(title="nanospin")

    def must_token(token: str) -> None:
        try:
            verify_admin_token(admin_secret, token)
        except ValueError as e:
            raise HTTPException(status_code=401, detail=str(e))

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request):
        return templates.TemplateResponse(request, "index.html", {"title": "nanospin"})

    @app.get("/overlay.svg")
    async def overlay():
        return FileResponse(ASSETS / "overlay.svg", media_type="image/svg+xml")

    @app.get("/raffle")
    async def raffle():
        """What the spinner should show. Polling it counts as a liveness ping."""
        with shared.locked() as logic:
            logic.ping(clock())
            win = logic.current_win()
        if win is None:
            return {"spin": False, "participants": [], "winner": 0}
        return {"spin": True, "participants": list(win.participants), "winner": win.winner_index}

    @app.post("/confirm")
    async def confirm():
        with shared.locked() as logic:
            logic.spin_finished()
        return Response(status_code=200)

    # --- control panel ---------------------------------------------

    @app.get("/admin/status")
    async def admin_status(token: str):
        must_token(token)
        now = clock()
        with shared.locked() as logic:
            countdown = logic.countdown(now)
            status = {
                "running": logic.running,
                "countdown": countdown,
                "countdown_text": fmt_countdown(countdown),
                "prize": format_balance(logic.prize),
                "interval": logic.raffle_interval,
                "spinner_connected": logic.spinner_connected(now),
                "spin_state": type(logic.spin_state).__name__.lower(),
                "participants": [p.name for p in logic.participants()],
                "winners": logic.winners(),
                "messages": [
                    {"author": m.display_name(), "message": m.message} for m in logic.latest_messages()
                ],
            }
        return status

    @app.post("/admin/start")
    async def admin_start(token: str):
        must_token(token)
        with shared.locked() as logic:
            logic.start()
        return {"running": True}

    @app.post("/admin/stop")
    async def admin_stop(token: str):
        must_token(token)
        with shared.locked() as logic:
            logic.stop()
        return {"running": False}

    @app.post("/admin/run-now")
    async def admin_run_now(token: str):
        must_token(token)
        with shared.locked() as logic:
            logic.run_raffle_now(clock())
        return {"ok": True}

    @app.post("/admin/chat")
    async def admin_chat(token: str, user: str = Form(...), message: str = Form(...)):
        """Type a chat message by hand, as if ``user`` had sent it."""
        must_token(token)
        msg = ChatMessage(author_channel_id=user, author_name=user, message=message)
        with shared.locked() as logic:
            logic.handle_chat_message(msg)
            registered = len(logic.participants())
        return {"ok": True, "participants": registered}

    return app
