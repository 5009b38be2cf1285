"""Entity ids exposed by the transit display device."""

SHOW_LINE_ICONS = "show_line_icons"
SCROLL_HEADSIGNS = "scroll_headsigns"
FLIP_DISPLAY = "flip_display"

TIME_DISPLAY = "time_display_config"
TIME_UNITS = "time_units_config"
LIST_MODE = "list_mode_config"

SCHEDULE = "schedule_config"
SORT_ORDER = "sort_order_config"
ABBREVIATIONS = "abbreviations_config"
ROUTE_STYLES = "route_styles_config"
BASE_URL = "base_url_config"
NOW_STR = "now_str_config"
MIN_LONG_STR = "min_long_str_config"
MIN_SHORT_STR = "min_short_str_config"
HOURS_SHORT_STR = "hours_short_str_config"

RELOAD_BUTTON = "reload_tracker"
RELOAD_BUTTON_FALLBACK = "reload tracker"

SWITCHES = (SHOW_LINE_ICONS, SCROLL_HEADSIGNS, FLIP_DISPLAY)
SELECTS = (TIME_DISPLAY, TIME_UNITS, LIST_MODE)
TEXTS = (
    SCHEDULE,
    SORT_ORDER,
    ABBREVIATIONS,
    ROUTE_STYLES,
    BASE_URL,
    NOW_STR,
    MIN_LONG_STR,
    MIN_SHORT_STR,
    HOURS_SHORT_STR,
)
