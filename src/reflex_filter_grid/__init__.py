"""reflex-filter-grid -- a filterable, login-gated data grid for Reflex.

Install the package and run the bundled API::

    pip install reflex-filter-grid
    reflex-filter-grid serve-api

Then compose the state mixins and components in a Reflex app (see
``examples/directory_app``).
"""

from reflex_filter_grid.api import create_api
from reflex_filter_grid.auth import TokenIssuer, User
from reflex_filter_grid.client import ApiClient, ListingResult
from reflex_filter_grid.columns import EMPLOYEE_COLUMNS, employee_renderers, employee_summary
from reflex_filter_grid.components import (
    filterable_grid,
    grid_detail_box,
    grid_error_box,
    grid_filter_debug,
    grid_selection_bar,
    login_form,
)
from reflex_filter_grid.config import GridAppSettings, clear_settings, get_settings
from reflex_filter_grid.dispatch import Dispatch, DispatchScheduler
from reflex_filter_grid.exceptions import (
    AuthenticationError,
    ColumnConfigError,
    FilterGridError,
    ListingError,
    SessionError,
    SessionExpiredError,
)
from reflex_filter_grid.filter_state import FilterStateStore
from reflex_filter_grid.focus import FocusToken, FocusTracker
from reflex_filter_grid.grid import GridTexts, GridView, render_grid
from reflex_filter_grid.log import get_logger
from reflex_filter_grid.models import (
    BodyOptions,
    ColumnDescriptor,
    FilterDescriptor,
    HeaderOptions,
    SelectOption,
)
from reflex_filter_grid.predicates import filter_rows, matches
from reflex_filter_grid.renderers import RendererRegistry, RichRenderer
from reflex_filter_grid.repository import DataFrameRepository, EmployeeRepository
from reflex_filter_grid.session import SessionContext
from reflex_filter_grid.state import FilterableGridMixin, SessionStateMixin
