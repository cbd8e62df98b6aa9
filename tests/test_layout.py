"""Tests for the grid layout."""

from backend_map.layout import layout
from backend_map.models import Position, Role, ScannedFile


def files(count):
    return [
        ScannedFile(id=f"f{i}.ts", path=f"f{i}.ts", name=f"f{i}", extension=".ts", role=Role.UNKNOWN, content="")
        for i in range(count)
    ]


class TestLayout:
    """Tests for default grid positions."""

    def test_empty(self):
        """Test that no files means no positions."""
        assert layout([]) == []

    def test_single(self):
        """Test that the first node sits at the origin."""
        assert layout(files(1)) == [Position(0, 0)]

    def test_square_grid(self):
        """Test that five files use three columns."""
        positions = layout(files(5))

        assert positions == [
            Position(0, 0),
            Position(270, 0),
            Position(540, 0),
            Position(0, 170),
            Position(270, 170),
        ]

    def test_custom_geometry(self):
        """Test overriding node size and spacing."""
        positions = layout(files(4), node_width=100, node_height=50, spacing=10)

        assert positions[3] == Position(110, 60)

    def test_positions_follow_list_order(self):
        """Test that each file gets its own cell even when ids repeat."""
        same = files(2)
        same[1].id = same[0].id

        assert layout(same) == [Position(0, 0), Position(270, 0)]

    def test_deterministic(self):
        """Test that the same input always gives the same layout."""
        assert layout(files(7)) == layout(files(7))
