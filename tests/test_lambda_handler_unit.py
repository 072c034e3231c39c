"""Unit tests for the Lambda handler."""

import json
import os
import time
from unittest.mock import Mock, patch

import pytest

from featured_feed.config import FeedConfig
from featured_feed.lambda_handler import RequestError, lambda_handler, parse_request
from featured_feed.models import FeatureItem


def make_items(count: int, publish: int | None = None) -> list[FeatureItem]:
    return [
        FeatureItem(
            id=f"item{i}",
            title=f"Item {i}",
            link=f"item{i}/",
            modified=1400000000,
            thumbnail=f"item{i}.png",
            content=f"<p>{i}</p>",
            publish=publish,
        )
        for i in range(count)
    ]


class TestParseRequestUnit:
    """Unit tests for parse_request."""

    def test_defaults(self):
        assert parse_request({}, 3) == ("atom", 3)
        assert parse_request({"queryStringParameters": None}, 3) == ("atom", 3)
        assert parse_request(None, 5) == ("atom", 5)

    def test_format_and_max(self):
        event = {"queryStringParameters": {"format": "HTML", "max": "-1"}}

        assert parse_request(event, 3) == ("html", -1)

    def test_empty_max_uses_default(self):
        event = {"queryStringParameters": {"format": "html", "max": ""}}

        assert parse_request(event, 4) == ("html", 4)

    def test_unknown_format(self):
        with pytest.raises(RequestError, match="Unsupported format"):
            parse_request({"queryStringParameters": {"format": "rss"}}, 3)

    def test_invalid_max(self):
        with pytest.raises(RequestError, match="Invalid max"):
            parse_request({"queryStringParameters": {"max": "three"}}, 3)


class TestLambdaHandlerUnit:
    """Unit tests for lambda_handler."""

    def setup_method(self):
        """Set up a mocked configuration."""
        self.mock_config = Mock()
        self.mock_config.aws_region = "eu-west-1"
        self.mock_config.max_features = 3
        self.mock_config.skipped = 0
        self.mock_config.get_feed_config.return_value = FeedConfig(
            site_url="https://example.org/", base_url="section/", title="Test"
        )
        self.context = Mock(aws_request_id="req-1", function_name="featured-feed")

    def invoke(self, event, items):
        self.mock_config.get_items.return_value = items
        with (
            patch(
                "featured_feed.lambda_handler.Config", return_value=self.mock_config
            ),
            patch("featured_feed.lambda_handler.send_cloudwatch_metrics") as mock_send,
        ):
            result = lambda_handler(event, self.context)
        return result, mock_send

    def test_atom_response(self):
        """The default response is the Atom feed."""
        result, mock_send = self.invoke({}, make_items(2))

        assert result["statusCode"] == 200
        assert result["headers"]["Content-Type"] == "application/atom+xml; charset=utf-8"
        assert result["body"].startswith('<?xml version="1.0" encoding="utf-8"?>')
        assert result["body"].count("<entry>") == 2
        assert 'href="https://example.org/section/item0/"' in result["body"]

        metrics, aws_region, _ = mock_send.call_args.args
        assert aws_region == "eu-west-1"
        assert metrics["items_total"] == 2
        assert metrics["items_rendered"] == 2
        assert metrics["errors"] == []

    def test_html_response_uses_default_max(self):
        """HTML is truncated to the configured maximum."""
        result, mock_send = self.invoke(
            {"queryStringParameters": {"format": "html"}}, make_items(5)
        )

        assert result["statusCode"] == 200
        assert result["headers"]["Content-Type"] == "text/html; charset=utf-8"
        assert result["body"].count("<li>") == 3
        assert 'href="item0/"' in result["body"]

        metrics = mock_send.call_args.args[0]
        assert metrics["items_published"] == 5
        assert metrics["items_rendered"] == 3

    def test_html_response_all_items(self):
        """A negative max renders every publishable item."""
        future = int(time.time()) + 86400
        items = make_items(4) + make_items(1, publish=future)
        result, mock_send = self.invoke(
            {"queryStringParameters": {"format": "html", "max": "-1"}}, items
        )

        assert result["body"].count("<li>") == 4
        metrics = mock_send.call_args.args[0]
        assert metrics["items_total"] == 5
        assert metrics["items_published"] == 4

    def test_bad_request(self):
        """An unknown format is a client error."""
        result, mock_send = self.invoke(
            {"queryStringParameters": {"format": "rss"}}, make_items(1)
        )

        assert result["statusCode"] == 400
        body = json.loads(result["body"])
        assert "Unsupported format" in body["error"]
        assert mock_send.call_args.args[0]["errors"]

    def test_configuration_failure(self):
        """A missing items file is a server error."""
        self.mock_config.get_items.side_effect = FileNotFoundError(
            "Features file not found: features.json"
        )
        result, mock_send = self.invoke({}, [])

        assert result["statusCode"] == 500
        body = json.loads(result["body"])
        assert "Features file not found" in body["error"]
        assert "execution_id" in body
        assert mock_send.called


class TestLambdaHandlerItemsFile:
    """Handler runs against a real items file with only metrics patched."""

    def test_malformed_items_are_counted(self, tmp_path):
        """Items dropped while loading show up in the skipped and total metrics."""
        good = {
            "id": "good",
            "title": "Good",
            "link": "good/",
            "modified": 1400000000,
            "thumbnail": "good.png",
            "content": "<p>good</p>",
        }
        features_file = tmp_path / "features.json"
        features_file.write_text(json.dumps([good, {"id": "broken"}]))
        context = Mock(aws_request_id="req-2", function_name="featured-feed")

        with (
            patch.dict(os.environ, {"FEATURES_FILE": str(features_file)}, clear=True),
            patch("featured_feed.lambda_handler.send_cloudwatch_metrics") as mock_send,
        ):
            result = lambda_handler({}, context)

        assert result["statusCode"] == 200
        assert result["body"].count("<entry>") == 1
        metrics = mock_send.call_args.args[0]
        assert metrics["items_total"] == 2
        assert metrics["items_published"] == 1
        assert metrics["items_rendered"] == 1
        assert metrics["items_skipped"] == 1
