import json
import logging
from guardian.errors import ExitCode, GuardianError


class SecretResolver:
    """
    Produces the database connection string, either directly from the
    configuration or from a secret store (azure | aws | hashicorp).

    Provider SDKs are optional extras and are imported on first use.
    """

    def __init__(self, timeout=30):
        self.timeout = timeout
        self.logger = logging.getLogger("SecretResolver")

    def resolve_connection_string(self, config):
        if config.DB_CONNECTION_STRING:
            self.logger.info("Using direct database connection string.")
            return config.DB_CONNECTION_STRING

        provider = config.VAULT_PROVIDER
        self.logger.info(f"Retrieving connection string from {provider} vault (key: {config.DB_VAULT_KEY}).")
        fetch = {
            'azure': self._from_azure,
            'aws': self._from_aws,
            'hashicorp': self._from_hashicorp,
        }.get(provider)
        if fetch is None:
            raise GuardianError(
                ExitCode.INVALID_CONFIGURATION, 'UNSUPPORTED_VAULT_PROVIDER',
                f"Unsupported vault provider '{provider}'.")

        error_code = f"{provider.upper()}_VAULT_ERROR"
        try:
            value = fetch(config)
        except GuardianError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to retrieve secret from {provider} vault: {e}")
            raise GuardianError(
                ExitCode.DATABASE_CONNECTION_FAILED, error_code,
                f"Failed to retrieve secret '{config.DB_VAULT_KEY}' from {provider} vault.") from e

        if not value:
            raise GuardianError(
                ExitCode.DATABASE_CONNECTION_FAILED, error_code,
                f"Secret '{config.DB_VAULT_KEY}' in {provider} vault is empty.")
        self.logger.info("Connection string retrieved from vault.")
        return value

    @staticmethod
    def _missing_sdk(package, extra):
        return GuardianError(
            ExitCode.INVALID_CONFIGURATION, 'VAULT_SDK_MISSING',
            f"{package} is required for this vault provider. Install with: pip install sql-guardian[{extra}]")

    def _from_azure(self, config):
        try:
            from azure.identity import DefaultAzureCredential
            from azure.keyvault.secrets import SecretClient
        except ImportError:
            raise self._missing_sdk("azure-identity and azure-keyvault-secrets", "azure") from None

        client = SecretClient(vault_url=config.VAULT_URL, credential=DefaultAzureCredential())
        return client.get_secret(config.DB_VAULT_KEY).value

    def _from_aws(self, config):
        try:
            import boto3
        except ImportError:
            raise self._missing_sdk("boto3", "aws") from None

        kwargs = {}
        if config.VAULT_URL:
            kwargs['endpoint_url'] = config.VAULT_URL
        client = boto3.client('secretsmanager', **kwargs)
        response = client.get_secret_value(SecretId=config.DB_VAULT_KEY)
        return response.get('SecretString')

    def _from_hashicorp(self, config):
        try:
            import requests
        except ImportError:
            raise self._missing_sdk("requests", "hashicorp") from None

        url = f"{config.VAULT_URL.rstrip('/')}/v1/secret/data/{config.DB_VAULT_KEY}"
        headers = {'Accept': 'application/json'}
        if config.VAULT_TOKEN:
            headers['X-Vault-Token'] = config.VAULT_TOKEN
            headers['Authorization'] = f"Bearer {config.VAULT_TOKEN}"
        response = requests.get(url, headers=headers, timeout=self.timeout)
        response.raise_for_status()
        try:
            data = response.json().get('data', {}).get('data', {})
        except json.JSONDecodeError as e:
            raise ValueError(f"Vault returned a non-JSON response: {e}") from e
        return data.get('connectionString') or data.get('value')
