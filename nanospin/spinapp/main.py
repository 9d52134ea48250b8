from __future__ import annotations

import asyncio
import logging
import sys

import uvicorn
from aiogram import Bot, Dispatcher

from spinapp.backend import Backend, LogNotifier, Notifier
from spinapp.bot import TelegramNotifier, build_router
from spinapp.config import ConfigError, Settings, load_settings
from spinapp.db import ParticipantsStore, create_engine_and_session, init_db
from spinapp.logic import RaffleLogic
from spinapp.nano import format_balance
from spinapp.prize_sender import PrizeSender
from spinapp.rpc import NanoRpcClient
from spinapp.security import sign_admin_token
from spinapp.state import SharedRaffle
from spinapp.web import create_app
from spinapp.work import LocalWorkGenerator, RpcWorkGenerator


log = logging.getLogger("spinapp")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [nanospin][%(name)s] %(levelname)s %(message)s",
    )


def build_logic(settings: Settings) -> RaffleLogic:
    logic = RaffleLogic()
    if settings.prize_raw is not None:
        log.info("using prize of %s", format_balance(settings.prize_raw))
        logic.set_prize(settings.prize_raw)
    if settings.raffle_interval is not None:
        log.info("using interval of %ss", settings.raffle_interval)
        logic.set_raffle_interval(float(settings.raffle_interval))
    return logic


def build_prize_sender(settings: Settings) -> PrizeSender:
    rpc = NanoRpcClient(settings.rpc_url)
    if settings.work_backend == "local":
        work = LocalWorkGenerator()
    else:
        # node-side PoW can take a while
        work = RpcWorkGenerator(NanoRpcClient(settings.work_url, timeout=120))
    return PrizeSender(settings.nano_prv_key, rpc, work)


async def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)

    prize_sender = build_prize_sender(settings)
    log.info("using account: %s", prize_sender.account)

    logic = build_logic(settings)
    engine, Session = create_engine_and_session(settings.database_url)
    await init_db(engine)
    store = ParticipantsStore(Session)
    loaded = await store.load()
    logic.add_participants(loaded)
    log.info("loaded %d participants", len(loaded))

    shared = SharedRaffle(logic)

    notifiers: list[Notifier] = [LogNotifier()]
    bot = None
    if settings.bot_token:
        bot = Bot(settings.bot_token)
        if settings.target_chat_id is not None:
            notifiers.append(TelegramNotifier(bot, settings.target_chat_id))
    else:
        log.warning("BOT_TOKEN not set; Telegram chat is disabled")

    backend = Backend(shared, prize_sender, notifiers=notifiers, store=store)

    app = create_app(shared, settings.admin_secret)
    server = uvicorn.Server(uvicorn.Config(app, host=settings.http_host, port=settings.http_port, log_level="info"))
    log.info("admin status: %s/admin/status?token=%s", settings.base_url, sign_admin_token(settings.admin_secret))

    tasks = [
        asyncio.create_task(backend.run(), name="ticker"),
        asyncio.create_task(server.serve(), name="http"),
    ]
    dp = None
    if bot is not None:
        dp = Dispatcher()
        dp.include_router(build_router(shared))
        tasks.append(asyncio.create_task(dp.start_polling(bot, handle_signals=False), name="telegram"))

    try:
        # uvicorn returns on SIGINT/SIGTERM; that is the stop signal for everything.
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for t in done:
            if t.exception() is not None:
                log.error("%s stopped: %r", t.get_name(), t.exception())
    finally:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if bot is not None:
            # Avoid "Unclosed client session" warnings from aiohttp.
            await bot.session.close()
        if isinstance(prize_sender.work, LocalWorkGenerator):
            prize_sender.work.close()
        await engine.dispose()


def run() -> None:
    try:
        asyncio.run(main())
    except ConfigError as e:
        setup_logging("INFO")
        log.error("configuration error: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
