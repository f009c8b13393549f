"""Engine constants — radii, thresholds, faction templates.

Tunables that are not exposed as configuration options live here.
"""

# -- Formation -----------------------------------------------------------

FORMATION_BASE_RADIUS: float = 35.0
"""Outer ring radius for the rank-and-file tier."""

LEADER_RING_RADIUS: float = 3.0
"""Tight radius for the highest-priority tier."""

MINI_BOSS_RING_FACTOR: float = 0.3
ELITE_RING_FACTOR: float = 0.6

DEFENDER_RING_RADIUS: float = 10.0
"""Radius of the defender ring around the objective."""

GROUND_OFFSET: float = 0.5
"""Height added above a resolved ground point when placing an actor."""

OBJECTIVE_SEARCH_RADIUS: float = 100.0
"""Search radius around the objective point for the objective actor."""

# -- Movement ------------------------------------------------------------

ARRIVAL_THRESHOLD: float = 10.0
"""Distance at which an actor counts as having reached its target."""

MOVE_JITTER: float = 5.0
"""Maximum XY offset added to each move order."""

DEFENDER_RESPAWN_MIN_OFFSET: float = 10.0
DEFENDER_RESPAWN_MAX_OFFSET: float = 15.0

# -- Bots ----------------------------------------------------------------

BOT_ALREADY_RESPAWNED_RADIUS: float = 15.0
"""A live bot this close to its anchor needs no respawn."""

BOT_TELEPORT_SPREAD: float = 10.0
BOT_RECRUIT_SPREAD: float = 20.0

# -- Narrative -----------------------------------------------------------

NARRATIVE_THRESHOLDS: tuple[int, ...] = (75, 50, 25)
"""Percent-remaining milestones announced during the countdown."""

FINAL_MINUTES: int = 5

# -- Factions ------------------------------------------------------------

FACTION_TEMPLATE_NEUTRAL: int = 35
"""Friendly-to-all template used during the narrative phase."""

FACTION_TEMPLATE_ALLIANCE: int = 84
FACTION_TEMPLATE_HORDE: int = 83

# -- Admin ---------------------------------------------------------------

WAYPOINT_MARKER_TEMPLATE: int = 15631
"""Invisible marker actor used to visualize paths."""

TEST_MARKER_LIFETIME: float = 20.0
