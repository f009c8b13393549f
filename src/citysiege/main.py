"""City siege server entry point.

Initializes all components and starts the asyncio event loop:
1. Load configuration (siege options, cities, localized strings)
2. Create engine services (world, announcer, spawner, respawn, bots, machine, orchestrator)
3. Wire event handlers onto the EventBus
4. Start the admin REST API
5. Start game loop (1s tick)

Usage:
    python -m citysiege.main
    # or via entry point:
    citysiege
"""

from __future__ import annotations

import asyncio
import logging
import random
import signal
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from citysiege.engine.ambience import AmbienceService
from citysiege.engine.announcer import Announcer
from citysiege.engine.bots import BotCoordinator
from citysiege.engine.formation import FormationSpawner
from citysiege.engine.game_loop import GameLoop
from citysiege.engine.orchestrator import SiegeOrchestrator
from citysiege.engine.path_driver import PathProgressionDriver
from citysiege.engine.respawn import RespawnScheduler
from citysiege.engine.rewards import RewardService
from citysiege.engine.siege_machine import SiegeEventStateMachine
from citysiege.loaders.city_loader import load_cities
from citysiege.loaders.config_loader import DEFAULT_CONFIG_PATH, SiegeConfig, load_siege_config
from citysiege.models.city import City
from citysiege.network.commands import register_all_handlers
from citysiege.network.router import Router
from citysiege.util.events import (
    ActorDied,
    ActorRespawned,
    EventBus,
    NarrativeMilestone,
    SiegeEnded,
    SiegePhaseChanged,
    SiegeStarted,
)
from citysiege.util.locale import Localizer
from citysiege.world.memory import MemoryAudience, MemoryBotIntegration, MemoryWorld

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Maps the standalone host creates scenes for
# ---------------------------------------------------------------------------
DEFAULT_MAP_IDS = [0, 1, 530]

# ---------------------------------------------------------------------------
# Container for all loaded configuration
# ---------------------------------------------------------------------------


@dataclass
class Configuration:
    """Holds all data loaded from config files."""

    siege: SiegeConfig = field(default_factory=SiegeConfig)
    cities: list[City] = field(default_factory=list)
    localizer: Localizer = field(default_factory=Localizer)
    path: str = DEFAULT_CONFIG_PATH


# ---------------------------------------------------------------------------
# Container for all services (makes passing around easier)
# ---------------------------------------------------------------------------


@dataclass
class Services:
    """Holds references to all engine services."""

    config: Optional[SiegeConfig] = None
    config_path: str = DEFAULT_CONFIG_PATH
    event_bus: Optional[EventBus] = None
    world: Optional[MemoryWorld] = None
    audience: Optional[MemoryAudience] = None
    bot_integration: Optional[MemoryBotIntegration] = None
    bots: Optional[BotCoordinator] = None
    machine: Optional[SiegeEventStateMachine] = None
    orchestrator: Optional[SiegeOrchestrator] = None
    router: Optional[Router] = None
    game_loop: Optional[GameLoop] = None
    markers: dict[str, list[int]] = field(default_factory=dict)
    clock: Callable[[], float] = time.time
    rest_server: Any = None


# ===================================================================
# 1. Load configuration
# ===================================================================


def load_configuration(config_path: str = DEFAULT_CONFIG_PATH) -> Configuration:
    """Load siege options, the city table and localized strings.

    Args:
        config_path: Path to the flat ``CitySiege.*`` options file.

    Returns:
        Populated :class:`Configuration`.
    """
    log.info("Loading configuration …")

    siege = load_siege_config(config_path)
    log.info("  siege:     %s", siege.status_line)

    cities = load_cities(config_path)
    enabled = sum(1 for c in cities if c.enabled)
    log.info("  cities:    %d loaded, %d enabled", len(cities), enabled)

    localizer = Localizer.from_directory(siege.locale_dir)
    log.info("  locales:   %s", ", ".join(localizer.locales))

    return Configuration(siege=siege, cities=cities, localizer=localizer, path=config_path)


# ===================================================================
# 2. Create engine services
# ===================================================================


def create_services(config: Configuration, rng: random.Random | None = None,
                    clock: Callable[[], float] = time.time) -> Services:
    """Instantiate all engine/network services with proper dependency injection.

    Wiring order matters: services that are injected into others are created first.

    Args:
        config: Loaded configuration.
        rng: Shared random source (seeded in tests).
        clock: Wall-clock source.

    Returns:
        Populated :class:`Services` container.
    """
    log.info("Creating services …")

    sc = config.siege
    rng = rng or random.Random()
    event_bus = EventBus()

    world = MemoryWorld(DEFAULT_MAP_IDS)
    for city in config.cities:
        scene = world.find_scene(city.map_id) or world.add_scene(city.map_id)
        scene.add_actor(city.leader_template, city.leader, name=f"Leader of {city.name}")
    log.info("  world:        %d leaders placed", len(config.cities))

    bot_integration = MemoryBotIntegration()
    world.bots = bot_integration
    audience = MemoryAudience()

    announcer = Announcer(sc, audience, config.localizer)
    spawner = FormationSpawner(sc, rng)
    bots = BotCoordinator(sc, bot_integration, rng)
    respawn = RespawnScheduler(sc, spawner, bots, rng)
    driver = PathProgressionDriver(rng)
    ambience = AmbienceService(sc, world, announcer)
    rewards = RewardService(sc, audience, announcer)

    machine = SiegeEventStateMachine(
        sc, world, announcer, spawner, respawn, driver, bots, ambience, rewards, event_bus, rng,
    )
    orchestrator = SiegeOrchestrator(sc, config.cities, machine, rng, clock)
    game_loop = GameLoop(orchestrator, sc, simulate=world.advance, clock=clock)
    router = Router()

    log.info("  all services created")

    return Services(
        config=sc,
        config_path=config.path,
        event_bus=event_bus,
        world=world,
        audience=audience,
        bot_integration=bot_integration,
        bots=bots,
        machine=machine,
        orchestrator=orchestrator,
        router=router,
        game_loop=game_loop,
        clock=clock,
    )


# ===================================================================
# 3. Wire up event handlers
# ===================================================================


def wire_events(services: Services) -> None:
    """Register event handlers on the EventBus.

    Args:
        services: All instantiated services.
    """
    log.info("Wiring event handlers …")
    bus = services.event_bus

    bus.on(SiegeStarted, lambda evt: log.info(
        "[EVENT] Siege %d at %s: %d attackers, %d defenders",
        evt.event_id, evt.city, evt.attackers, evt.defenders))
    bus.on(SiegePhaseChanged, lambda evt: log.info(
        "[EVENT] Siege %d at %s entered %s", evt.event_id, evt.city, evt.new_phase))
    bus.on(NarrativeMilestone, lambda evt: log.debug(
        "[EVENT] Siege %d at %s: %d%% of the countdown left", evt.event_id, evt.city, evt.percent))
    bus.on(SiegeEnded, lambda evt: log.info(
        "[EVENT] Siege %d at %s ended: %s%s", evt.event_id, evt.city, evt.outcome,
        " (forced)" if evt.forced else ""))
    bus.on(ActorDied, lambda evt: log.debug(
        "[EVENT] Siege %d: %s %d died", evt.event_id, evt.tier, evt.identity))
    bus.on(ActorRespawned, lambda evt: log.debug(
        "[EVENT] Siege %d: %s %d returned as %d",
        evt.event_id, evt.tier, evt.old_identity, evt.new_identity))

    log.info("  event handlers registered")


# ===================================================================
# 4. Start network server
# ===================================================================


async def start_network(services: Services) -> None:
    """Register admin commands and start the REST API.

    The FastAPI app is served by uvicorn as a background task.

    Args:
        services: All instantiated services.
    """
    log.info("Starting network servers …")

    register_all_handlers(services.router, services)

    from citysiege.network.rest_api import create_app
    import uvicorn

    rest_app = create_app(services)
    cfg = services.config
    config = uvicorn.Config(
        rest_app,
        host=cfg.admin_host,
        port=cfg.admin_port,
        log_level="info",
        access_log=False,
    )
    rest_server = uvicorn.Server(config)
    services.rest_server = rest_server
    asyncio.create_task(rest_server.serve())
    log.info("  REST API listening on http://%s:%d", cfg.admin_host, cfg.admin_port)


# ===================================================================
# 5. Start game loop
# ===================================================================


async def start_game_loop(services: Services) -> None:
    """Run the siege loop until a shutdown signal is received.

    Args:
        services: All instantiated services.
    """
    log.info("Starting game loop …")
    loop = asyncio.get_running_loop()

    def _request_shutdown() -> None:
        log.info("Shutdown signal received — stopping …")
        services.game_loop.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown)

    delay = services.orchestrator.start()
    log.info("  first siege in %.0f s", delay)
    log.info("  game loop running (%d ms tick)", services.config.tick_interval_ms)
    await services.game_loop.run()

    # --- Cleanup after loop exits ---
    log.info("Shutting down …")
    services.orchestrator.shutdown()
    if services.rest_server is not None:
        services.rest_server.should_exit = True
        log.info("  REST API server stopped")
    log.info("  goodbye")


# ===================================================================
# Entry points
# ===================================================================


async def _start(config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Initialize and run all server components."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== City Siege starting ===")

    config = load_configuration(config_path)
    if config.siege.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)

    services = create_services(config)
    wire_events(services)
    await start_network(services)
    await start_game_loop(services)


def main() -> None:
    """Entry point for the siege server.

    Supports command-line arguments:
        --config <path>  Use a custom options file (default: config/citysiege.yaml)
    """
    config_path = DEFAULT_CONFIG_PATH

    if "--config" in sys.argv:
        idx = sys.argv.index("--config")
        if idx + 1 >= len(sys.argv):
            print("Error: --config requires an argument", file=sys.stderr)
            sys.exit(1)
        config_path = sys.argv[idx + 1]

    asyncio.run(_start(config_path=config_path))


if __name__ == "__main__":
    main()
