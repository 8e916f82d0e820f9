# test/test_schema.py
import pytest

from wpisysid.core import ChannelSchema, InvalidSchema


def test_schema_element_width_for_floating_types():
    assert ChannelSchema(entry_id=1, name="a", type="double[]").element_width == 8
    assert ChannelSchema(entry_id=1, name="a", type="double").element_width == 8
    assert ChannelSchema(entry_id=1, name="a", type="float[]").element_width == 4
    assert ChannelSchema(entry_id=1, name="a", type=" float ").element_width == 4


def test_schema_non_floating_types():
    for type_ in ("int64[]", "boolean", "string", "struct:Pose2d"):
        schema = ChannelSchema(entry_id=3, name="x", type=type_)
        assert schema.element_width is None
        assert not schema.is_floating


def test_schema_rejects_empty_name():
    with pytest.raises(InvalidSchema):
        ChannelSchema(entry_id=1, name="  ", type="double[]")


def test_schema_rejects_control_id():
    with pytest.raises(InvalidSchema):
        ChannelSchema(entry_id=0, name="a", type="double[]")


def test_schema_is_immutable():
    schema = ChannelSchema(entry_id=1, name="a", type="double[]")
    with pytest.raises(AttributeError):
        schema.name = "b"  # type: ignore[misc]
