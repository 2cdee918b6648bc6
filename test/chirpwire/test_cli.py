from click import BadParameter
from click.testing import CliRunner
from pytest import raises

from chirpwire.execute.cli import chirpwire_streamer, parse_parameters


def test_parse_parameters():
    assert parse_parameters(()) == []
    assert parse_parameters(("track=python", "q=a=b", "empty=")) == [
        ("track", "python"),
        ("q", "a=b"),
        ("empty", ""),
    ]

    with raises(BadParameter):
        parse_parameters(("novalue",))
    with raises(BadParameter):
        parse_parameters(("=value",))


def test_streamer_requires_credentials():
    runner = CliRunner()
    result = runner.invoke(
        chirpwire_streamer,
        ["https://stream.example/1.1/statuses/sample.json"],
        env={"CHIRPWIRE_CONSUMER_KEY": None, "CHIRPWIRE_CONSUMER_SECRET": None},
    )

    assert result.exit_code == 2
    assert "consumer-key" in result.output
