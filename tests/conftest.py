"""Shared fixtures for Gremlin tests."""

import pytest

from gremlin.config import reset_settings
from gremlin.session.models import (
    AppInfo,
    DeviceInfo,
    ElementInfo,
    ElementType,
    EventType,
    InputData,
    NavigationData,
    PerformanceSample,
    Rect,
    ScreenInfo,
    Session,
    SessionEvent,
    SessionHeader,
    ScrollData,
    SwipeData,
    TapData,
)
from gremlin.spec.models import (
    GremlinSpec,
    SpecMetadata,
    State,
    Transition,
    TransitionEvent,
    TransitionEventType,
)
from gremlin.spec.predicates import ElementVisible
from gremlin.spec.refs import ElementKind, ElementRef


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings():
    """Every test starts and ends with freshly read settings."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set GREMLIN_ environment variables for testing."""
    env_vars = {
        "GREMLIN_LOG_LEVEL": "DEBUG",
        "GREMLIN_BASE_URL": "https://shop.test",
        "GREMLIN_APP_ID": "com.shop.app",
        "GREMLIN_TEST_TIMEOUT_MS": "45000",
        "GREMLIN_FUZZ_NUM_TESTS": "6",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    reset_settings()
    return env_vars


# =============================================================================
# Sessions
# =============================================================================


@pytest.fixture
def sample_header():
    """Header for a short web session."""
    return SessionHeader(
        session_id="lx2k9a-abc12345",
        start_time=1_700_000_000_000,
        end_time=1_700_000_060_000,
        device=DeviceInfo(
            platform="web",
            os_version="14.2",
            screen=ScreenInfo(width=1440, height=900, pixel_ratio=2),
            user_agent="Mozilla/5.0",
            locale="en-US",
        ),
        app=AppInfo(name="Shop", version="2.3.1", identifier="https://shop.test", build="412"),
    )


@pytest.fixture
def sample_session(sample_header):
    """Session with three elements and a mix of event kinds."""
    elements = [
        ElementInfo(
            type=ElementType.BUTTON,
            test_id="add-to-cart",
            text="Add to cart",
            bounds=Rect(x=10.4, y=20.5, width=120.2, height=44.7),
        ),
        ElementInfo(type=ElementType.INPUT, test_id="search", accessibility_label="Search"),
        ElementInfo(type=ElementType.SCROLL_VIEW, css_selector="#products"),
    ]
    events = [
        SessionEvent(
            dt=0,
            type=EventType.NAVIGATION,
            data=NavigationData(screen="Home", url="https://shop.test/"),
            perf=PerformanceSample(fps=59.7, memory_usage=45.2, js_thread_lag=3.4),
        ),
        SessionEvent(
            dt=196.5,
            type=EventType.TAP,
            data=TapData(x=100.4, y=200.6, element_index=1),
        ),
        SessionEvent(
            dt=820,
            type=EventType.INPUT,
            data=InputData(value="running shoes", element_index=1, input_type="search"),
        ),
        SessionEvent(
            dt=1500.2,
            type=EventType.SCROLL,
            data=ScrollData(delta_x=0, delta_y=312.7, container_index=2, coalesced=4),
            perf=PerformanceSample(fps=48.0, time_since_navigation=2516.7),
        ),
        SessionEvent(
            dt=300,
            type=EventType.SWIPE,
            data=SwipeData(start_x=200, start_y=600.5, end_x=200, end_y=100.4, duration=250.6, direction="up"),
        ),
        SessionEvent(
            dt=410,
            type=EventType.TAP,
            data=TapData(x=70, y=42, element_index=0),
        ),
        SessionEvent(
            dt=95,
            type=EventType.DOUBLE_TAP,
            data=TapData(x=70, y=42, kind="double_tap", element_index=0),
        ),
        SessionEvent(
            dt=1200,
            type=EventType.NAVIGATION,
            data=NavigationData(screen="Cart", nav_type="push", url="https://shop.test/cart"),
            perf=PerformanceSample(fps=60, memory_usage=51.875),
        ),
    ]
    return Session(header=sample_header, elements=elements, events=events)


# =============================================================================
# Specs
# =============================================================================


def _tap(test_id, kind=ElementKind.BUTTON, text=None):
    return TransitionEvent(
        type=TransitionEventType.TAP,
        element=ElementRef(test_id=test_id, type=kind, text=text),
    )


@pytest.fixture
def sample_spec():
    """Checkout spec: two flows to the confirmation screen plus a dead end.

    home --tap product--> product --tap add--> cart --tap checkout--> confirm
    home --input search--> results --tap product--> product
    cart --back--> product
    home --tap help--> help
    """
    states = [
        State(id="home", name="Home", metadata={"url": "https://shop.test/"}),
        State(id="results", name="Results", description="Search results url: /search\\?q="),
        State(id="product", name="Product", metadata={"url": "https://shop.test/product/42"}),
        State(id="cart", name="Cart", metadata={"url": "/cart"}),
        State(id="confirm", name="Confirmation"),
        State(id="help", name="Help"),
    ]
    transitions = [
        Transition(
            id="t1",
            from_state="home",
            to_state="product",
            event=_tap("product-card-*", kind=ElementKind.LIST_ITEM),
            frequency=40,
        ),
        Transition(
            id="t2",
            from_state="product",
            to_state="cart",
            event=_tap("add-to-cart"),
            guard=ElementVisible(element=ElementRef(test_id="add-to-cart")),
            frequency=30,
        ),
        Transition(
            id="t3",
            from_state="cart",
            to_state="confirm",
            event=_tap("checkout"),
            frequency=20,
        ),
        Transition(
            id="t4",
            from_state="home",
            to_state="results",
            event=TransitionEvent(
                type=TransitionEventType.INPUT,
                element=ElementRef(test_id="search", type=ElementKind.INPUT),
                data={"value": "shoes"},
            ),
            frequency=15,
        ),
        Transition(
            id="t5",
            from_state="results",
            to_state="product",
            event=_tap("result-item"),
            frequency=10,
        ),
        Transition(
            id="t6",
            from_state="cart",
            to_state="product",
            event=TransitionEvent(type=TransitionEventType.BACK),
            frequency=5,
        ),
        Transition(
            id="t7",
            from_state="home",
            to_state="help",
            event=_tap(None, kind=ElementKind.LINK, text="Help"),
            frequency=2,
        ),
    ]
    return GremlinSpec(
        name="Shop Checkout",
        initial_state="home",
        states=states,
        transitions=transitions,
        metadata=SpecMetadata(
            created_at="2024-01-01T00:00:00+00:00",
            updated_at="2024-01-01T00:00:00+00:00",
            session_count=12,
        ),
    )


@pytest.fixture
def linear_spec():
    """Three states in a line: a -> b -> c."""
    return GremlinSpec(
        name="Linear",
        initial_state="a",
        states=[State(id="a", name="A"), State(id="b", name="B"), State(id="c", name="C")],
        transitions=[
            Transition(id="ab", from_state="a", to_state="b", event=_tap("next"), frequency=3),
            Transition(id="bc", from_state="b", to_state="c", event=_tap("done"), frequency=1),
        ],
    )
