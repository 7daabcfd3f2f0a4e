"""Tests for flow extraction and path search."""

from gremlin.spec.flows import Flow, extract_flows, shortest_path, terminal_states
from gremlin.spec.models import GremlinSpec, State, Transition, TransitionEvent, TransitionEventType


def _spec(states, edges, initial="s0"):
    """Build a spec from (id, from, to, frequency) tuples."""
    return GremlinSpec(
        name="graph",
        initial_state=initial,
        states=[State(id=s, name=s.upper()) for s in states],
        transitions=[
            Transition(
                id=tid,
                from_state=src,
                to_state=dst,
                event=TransitionEvent(type=TransitionEventType.TAP),
                frequency=freq,
            )
            for tid, src, dst, freq in edges
        ],
    )


class TestTerminalStates:
    """Tests for terminal_states."""

    def test_terminal_states(self, sample_spec):
        """Test that states without outgoing transitions are terminal."""
        assert terminal_states(sample_spec) == {"confirm", "help"}

    def test_no_terminals_in_cycle(self):
        """Test that a pure cycle has no terminal state."""
        spec = _spec(["s0", "s1"], [("a", "s0", "s1", 1), ("b", "s1", "s0", 1)])

        assert terminal_states(spec) == set()


class TestExtractFlows:
    """Tests for extract_flows."""

    def test_flows_ranked_by_frequency(self, sample_spec):
        """Test discovery, ranking and naming on the checkout spec."""
        flows = extract_flows(sample_spec)

        assert [f.transition_ids for f in flows] == [
            ("t1", "t2", "t3"),
            ("t4", "t5", "t2", "t3"),
            ("t7",),
        ]
        assert [f.frequency for f in flows] == [90, 75, 2]
        assert [f.name for f in flows] == [
            "Home_to_Confirmation",
            "Home_to_Confirmation_2",
            "Home_to_Help",
        ]

    def test_flow_description_uses_key_events(self, sample_spec):
        """Test that descriptions name the first three test ids or event types."""
        flows = extract_flows(sample_spec)

        assert flows[0].description == "Flow from Home to Confirmation via product-card-*_add-to-cart_checkout"
        assert flows[1].description == "Flow from Home to Confirmation via search_result-item_add-to-cart"
        assert flows[2].description == "Flow from Home to Help via tap"

    def test_flow_endpoints(self, sample_spec):
        """Test start and end state bookkeeping."""
        flow = extract_flows(sample_spec)[0]

        assert flow.start_state == "home"
        assert flow.end_state == "confirm"
        assert len(flow) == 3

    def test_limit_truncates_after_ranking(self, sample_spec):
        """Test that the limit keeps the highest-ranked flows."""
        flows = extract_flows(sample_spec, limit=1)

        assert [f.name for f in flows] == ["Home_to_Confirmation"]

    def test_max_depth_bounds_length(self, sample_spec):
        """Test that paths longer than max_depth are not flows."""
        flows = extract_flows(sample_spec, max_depth=3)

        assert [f.transition_ids for f in flows] == [("t1", "t2", "t3"), ("t7",)]
        assert all(len(f) <= 3 for f in flows)

    def test_equal_frequencies_keep_discovery_order(self):
        """Test that ties are broken by depth-first discovery order."""
        spec = _spec(
            ["s0", "a", "b", "end"],
            [
                ("x", "s0", "a", 1),
                ("y", "s0", "b", 1),
                ("xa", "a", "end", 1),
                ("yb", "b", "end", 1),
            ],
        )

        flows = extract_flows(spec)

        assert [f.transition_ids for f in flows] == [("x", "xa"), ("y", "yb")]
        assert [f.name for f in flows] == ["S0_to_END", "S0_to_END_2"]

    def test_cycles_terminate(self):
        """Test that a cycle is traversed at most once per transition."""
        spec = _spec(
            ["s0", "s1", "done"],
            [
                ("go", "s0", "s1", 5),
                ("back", "s1", "s0", 3),
                ("finish", "s1", "done", 1),
            ],
        )

        flows = extract_flows(spec, max_depth=50)

        assert [f.transition_ids for f in flows] == [("go", "finish")]

    def test_states_may_repeat(self):
        """Test that a flow may revisit a state through distinct transitions."""
        spec = _spec(
            ["s0", "s1", "done"],
            [
                ("go", "s0", "s1", 1),
                ("back", "s1", "s0", 1),
                ("go2", "s0", "s1", 1),
                ("finish", "s1", "done", 1),
            ],
        )

        ids = {f.transition_ids for f in extract_flows(spec)}

        assert ("go", "back", "go2", "finish") in ids
        assert ("go", "finish") in ids

    def test_initial_terminal_state_has_no_flows(self):
        """Test that an empty path is never a flow."""
        spec = _spec(["s0"], [])

        assert extract_flows(spec) == []

    def test_no_terminal_reachable(self):
        """Test that a spec whose graph is all cycles yields no flows."""
        spec = _spec(["s0", "s1"], [("a", "s0", "s1", 1), ("b", "s1", "s0", 1)])

        assert extract_flows(spec) == []

    def test_flows_are_unique(self, sample_spec):
        """Test that no two flows share the same transition sequence."""
        flows = extract_flows(sample_spec, max_depth=20, limit=100)

        assert len({f.transition_ids for f in flows}) == len(flows)

    def test_extract_is_pure(self, sample_spec):
        """Test that repeated extraction gives identical results."""
        first = extract_flows(sample_spec)
        second = extract_flows(sample_spec)

        assert [(f.name, f.transition_ids) for f in first] == [(f.name, f.transition_ids) for f in second]


class TestFlow:
    """Tests for the Flow type."""

    def test_empty_flow(self):
        """Test frequency and length of an empty flow."""
        flow = Flow(name="f", description="d")

        assert flow.frequency == 0
        assert len(flow) == 0
        assert flow.transition_ids == ()


class TestShortestPath:
    """Tests for shortest_path."""

    def test_same_state(self, sample_spec):
        """Test that a state reaches itself with no transitions."""
        assert shortest_path(sample_spec, "cart", "cart") == []

    def test_direct(self, sample_spec):
        """Test a single-hop path."""
        assert [t.id for t in shortest_path(sample_spec, "home", "product")] == ["t1"]

    def test_multi_hop(self, sample_spec):
        """Test that the fewest transitions are taken."""
        assert [t.id for t in shortest_path(sample_spec, "home", "confirm")] == ["t1", "t2", "t3"]

    def test_unreachable(self, sample_spec):
        """Test that unreachable targets return None."""
        assert shortest_path(sample_spec, "confirm", "home") is None
        assert shortest_path(sample_spec, "home", "nowhere") is None
