"""Unit tests for metadata resolution."""

import pytest
from metricscaler.exceptions import ConfigError
from metricscaler.models import IdentityMode
from metricscaler.resolver import (
    resolve_azure_queue_metadata,
    resolve_identity_mode,
    resolve_mysql_metadata,
)

CONNECTION = "DefaultEndpointsProtocol=https;AccountName=acct;AccountKey=a2V5"


class TestResolveIdentityMode:
    """Tests for identity mode resolution."""

    def test_empty_defaults_to_none(self):
        """Test that no requested mode resolves to none."""
        assert resolve_identity_mode("", {}) is IdentityMode.NONE
        assert resolve_identity_mode(None, {}) is IdentityMode.NONE

    def test_legacy_flag_selects_azure(self):
        """Test the legacy useAAdPodIdentity flag."""
        declared = {"useAAdPodIdentity": "true"}
        assert resolve_identity_mode("", declared) is IdentityMode.AZURE

    def test_legacy_flag_false_is_ignored(self):
        """Test that a false legacy flag keeps none."""
        declared = {"useAAdPodIdentity": "false"}
        assert resolve_identity_mode("", declared) is IdentityMode.NONE

    def test_explicit_mode_overrides_legacy_flag(self):
        """Test that an explicit mode wins over the legacy flag."""
        declared = {"useAAdPodIdentity": "true"}
        assert resolve_identity_mode("none", declared) is IdentityMode.NONE

    def test_unknown_mode_rejected(self):
        """Test that unknown identity modes are rejected."""
        with pytest.raises(ConfigError, match="gcp"):
            resolve_identity_mode("gcp", {})


class TestResolveAzureQueueMetadata:
    """Tests for Azure queue metadata resolution."""

    def test_defaults_from_environment(self):
        """Test default target length and connection setting."""
        meta, mode = resolve_azure_queue_metadata(
            {"queueName": "q1"}, {"AzureWebJobsStorage": "conn"}, {}
        )

        assert mode is IdentityMode.NONE
        assert meta.identity_mode is IdentityMode.NONE
        assert meta.queue_name == "q1"
        assert meta.target_queue_length == 5
        assert meta.visible_peek_limit == 5
        assert meta.connection == "conn"

    def test_auth_param_connection_wins(self):
        """Test that the auth parameter takes precedence over the environment."""
        meta, _ = resolve_azure_queue_metadata(
            {"queueName": "q1", "connection": "CUSTOM"},
            {"CUSTOM": "from-env", "AzureWebJobsStorage": "default-env"},
            {"connection": "from-auth"},
        )
        assert meta.connection == "from-auth"

    def test_custom_connection_setting(self):
        """Test lookup of a named connection setting."""
        meta, _ = resolve_azure_queue_metadata(
            {"queueName": "q1", "connection": "CUSTOM"},
            {"CUSTOM": "from-env", "AzureWebJobsStorage": "default-env"},
            {},
        )
        assert meta.connection == "from-env"

    def test_missing_connection(self):
        """Test error when no connection resolves."""
        with pytest.raises(ConfigError, match="no connection setting given"):
            resolve_azure_queue_metadata({"queueName": "q1"}, {}, {})

    def test_missing_queue_name(self):
        """Test error when queueName is absent or empty."""
        with pytest.raises(ConfigError, match="no queueName given"):
            resolve_azure_queue_metadata({}, {"AzureWebJobsStorage": "conn"}, {})
        with pytest.raises(ConfigError, match="no queueName given"):
            resolve_azure_queue_metadata(
                {"queueName": ""}, {"AzureWebJobsStorage": "conn"}, {}
            )

    def test_non_numeric_queue_length(self):
        """Test error on a non-numeric target length."""
        with pytest.raises(ConfigError, match="queueLength"):
            resolve_azure_queue_metadata(
                {"queueName": "q1", "queueLength": "lots"},
                {"AzureWebJobsStorage": "conn"},
                {},
            )

    def test_negative_queue_length(self):
        """Test error on a negative target length."""
        with pytest.raises(ConfigError, match="queueLength"):
            resolve_azure_queue_metadata(
                {"queueName": "q1", "queueLength": "-1"},
                {"AzureWebJobsStorage": "conn"},
                {},
            )

    def test_azure_identity_requires_account_name(self):
        """Test that token mode requires accountName."""
        with pytest.raises(ConfigError, match="no accountName given"):
            resolve_azure_queue_metadata({"queueName": "q1"}, {}, {}, "azure")

    def test_azure_identity_skips_connection(self):
        """Test that token mode ignores connection settings."""
        meta, mode = resolve_azure_queue_metadata(
            {"queueName": "q1", "accountName": "acct"}, {}, {}, "azure"
        )

        assert mode is IdentityMode.AZURE
        assert meta.account_name == "acct"
        assert meta.connection == ""

    def test_legacy_flag_requires_account_name(self):
        """Test that the legacy flag switches to token mode."""
        with pytest.raises(ConfigError, match="no accountName given"):
            resolve_azure_queue_metadata(
                {"queueName": "q1", "useAAdPodIdentity": "true"},
                {"AzureWebJobsStorage": "conn"},
                {},
            )

    def test_unsupported_identity(self):
        """Test error on an unsupported identity mode."""
        with pytest.raises(ConfigError, match="aws"):
            resolve_azure_queue_metadata(
                {"queueName": "q1"}, {"AzureWebJobsStorage": "conn"}, {}, "aws"
            )

    def test_peek_limit_capped_by_default(self):
        """Test that the default peek limit is capped at the service limit."""
        meta, _ = resolve_azure_queue_metadata(
            {"queueName": "q1", "queueLength": "100"},
            {"AzureWebJobsStorage": "conn"},
            {},
        )
        assert meta.target_queue_length == 100
        assert meta.visible_peek_limit == 32

    def test_explicit_peek_limit(self):
        """Test an explicitly configured peek limit."""
        meta, _ = resolve_azure_queue_metadata(
            {"queueName": "q1", "queueLength": "3", "visibleQueuePeekLimit": "20"},
            {"AzureWebJobsStorage": "conn"},
            {},
        )
        assert meta.target_queue_length == 3
        assert meta.visible_peek_limit == 20

    def test_explicit_peek_limit_out_of_range(self):
        """Test error on a peek limit above the service limit."""
        with pytest.raises(ConfigError, match="visibleQueuePeekLimit"):
            resolve_azure_queue_metadata(
                {"queueName": "q1", "visibleQueuePeekLimit": "33"},
                {"AzureWebJobsStorage": "conn"},
                {},
            )

    def test_metadata_is_immutable(self):
        """Test that resolved metadata cannot be changed."""
        meta, _ = resolve_azure_queue_metadata(
            {"queueName": "q1"}, {"AzureWebJobsStorage": CONNECTION}, {}
        )
        with pytest.raises(Exception):
            meta.queue_name = "other"

    def test_connection_hidden_from_repr(self):
        """Test that the connection string is not rendered."""
        meta, _ = resolve_azure_queue_metadata(
            {"queueName": "q1"}, {"AzureWebJobsStorage": CONNECTION}, {}
        )
        assert "a2V5" not in repr(meta)


class TestResolveMySQLMetadata:
    """Tests for MySQL metadata resolution."""

    def test_missing_connection_fields(self):
        """Test that discrete fields are required without a connection string."""
        declared = {"query": "SELECT COUNT(*) FROM t", "queryValue": "10"}
        with pytest.raises(ConfigError, match="no host given"):
            resolve_mysql_metadata(declared, {}, {})

    @pytest.mark.parametrize("missing", ["host", "port", "username", "dbName"])
    def test_each_discrete_field_required(self, missing):
        """Test that a missing discrete field is named in the error."""
        declared = {
            "query": "SELECT 1",
            "queryValue": "1",
            "host": "db",
            "port": "3306",
            "username": "scaler",
            "dbName": "shop",
        }
        del declared[missing]
        with pytest.raises(ConfigError, match=f"no {missing} given"):
            resolve_mysql_metadata(declared, {}, {})

    def test_missing_query(self):
        """Test error when query is absent."""
        with pytest.raises(ConfigError, match="no query given"):
            resolve_mysql_metadata({"queryValue": "1"}, {}, {})

    def test_missing_query_value(self):
        """Test that queryValue has no default."""
        with pytest.raises(ConfigError, match="no queryValue given"):
            resolve_mysql_metadata({"query": "SELECT 1"}, {}, {})

    def test_non_numeric_query_value(self):
        """Test error on a non-numeric queryValue."""
        with pytest.raises(ConfigError, match="queryValue"):
            resolve_mysql_metadata({"query": "SELECT 1", "queryValue": "ten"}, {}, {})

    def test_auth_param_connection_string_wins(self):
        """Test that the auth parameter takes precedence over the environment."""
        meta, _ = resolve_mysql_metadata(
            {"query": "SELECT 1", "queryValue": "1", "connectionString": "MYSQL_CONN"},
            {"MYSQL_CONN": "mysql://env@db/shop"},
            {"connectionString": "mysql://auth@db/shop"},
        )
        assert meta.connection_string == "mysql://auth@db/shop"
        assert meta.host == ""

    def test_connection_string_from_environment(self):
        """Test lookup of a named connection string setting."""
        meta, mode = resolve_mysql_metadata(
            {"query": "SELECT 1", "queryValue": "1", "connectionString": "MYSQL_CONN"},
            {"MYSQL_CONN": "mysql://env@db/shop"},
            {},
        )
        assert mode is IdentityMode.NONE
        assert meta.connection_string == "mysql://env@db/shop"

    def test_unresolved_connection_string_falls_back_to_fields(self):
        """Test fallback to discrete fields when the setting is not in the environment."""
        with pytest.raises(ConfigError, match="no host given"):
            resolve_mysql_metadata(
                {"query": "SELECT 1", "queryValue": "1", "connectionString": "MISSING"},
                {},
                {},
            )

    def test_discrete_fields_and_password(self):
        """Test discrete fields with password from the environment."""
        meta, _ = resolve_mysql_metadata(
            {
                "query": "SELECT 1",
                "queryValue": "7",
                "host": "db",
                "port": "3306",
                "username": "scaler",
                "dbName": "shop",
                "password": "MYSQL_PASSWORD",
            },
            {"MYSQL_PASSWORD": "s3cret"},
            {},
        )

        assert meta.query_value == 7
        assert meta.host == "db"
        assert meta.port == 3306
        assert meta.username == "scaler"
        assert meta.db_name == "shop"
        assert meta.password == "s3cret"
        assert meta.connection_string == ""
        assert "s3cret" not in repr(meta)

    def test_password_auth_param_wins(self):
        """Test that the password auth parameter takes precedence."""
        meta, _ = resolve_mysql_metadata(
            {
                "query": "SELECT 1",
                "queryValue": "7",
                "host": "db",
                "port": "3306",
                "username": "scaler",
                "dbName": "shop",
                "password": "MYSQL_PASSWORD",
            },
            {"MYSQL_PASSWORD": "from-env"},
            {"password": "from-auth"},
        )
        assert meta.password == "from-auth"

    def test_password_defaults_to_empty(self):
        """Test that password is optional."""
        meta, _ = resolve_mysql_metadata(
            {
                "query": "SELECT 1",
                "queryValue": "7",
                "host": "db",
                "port": "3306",
                "username": "scaler",
                "dbName": "shop",
            },
            {},
            {},
        )
        assert meta.password == ""

    def test_non_numeric_port(self):
        """Test error on a non-numeric port."""
        with pytest.raises(ConfigError, match="port"):
            resolve_mysql_metadata(
                {
                    "query": "SELECT 1",
                    "queryValue": "7",
                    "host": "db",
                    "port": "mysql",
                    "username": "scaler",
                    "dbName": "shop",
                },
                {},
                {},
            )

    def test_azure_identity_rejected(self):
        """Test that token identity is not supported for MySQL."""
        with pytest.raises(ConfigError, match="not supported for mysql"):
            resolve_mysql_metadata(
                {"query": "SELECT 1", "queryValue": "1"},
                {},
                {"connectionString": "mysql://u@db/shop"},
                "azure",
            )
