from __future__ import annotations

from urllib.parse import urlencode

import typer

from blobgate.auth.claims import JWTClaimsProvider, issue_storage_token
from blobgate.security.signing import signed_blob_query

app = typer.Typer(no_args_is_help=True, add_completion=False)

SecretOpt = typer.Option(..., envvar="STORAGE_JWT_SECRET", help="Shared signing secret")


@app.command("sign-url")
def sign_url(
        uid: str = typer.Option(..., help="User id"),
        blob_id: str = typer.Option(..., help="Blob id"),
        ttl: int = typer.Option(3600, min=1, envvar="STORAGE_SIGNED_URL_TTL_SECONDS", help="Seconds until the URL expires"),
        base_url: str = typer.Option("http://localhost:8000", help="Gateway base URL"),
        secret: str = SecretOpt,
):
    """Print a signed /blobstorage URL."""
    params = signed_blob_query(uid, blob_id, secret.encode("utf-8"), ttl_seconds=ttl)
    typer.echo(f"{base_url.rstrip('/')}/blobstorage?{urlencode(params)}")


@app.command("issue-token")
def issue_token(
        uid: str = typer.Option(..., help="User id"),
        document_id: str = typer.Option(..., help="Document id"),
        ttl: int = typer.Option(3600, min=1, envvar="STORAGE_TOKEN_TTL_SECONDS", help="Token lifetime in seconds"),
        secret: str = SecretOpt,
):
    """Print a storage token for /storage/{token}."""
    provider = JWTClaimsProvider(secret.encode("utf-8"))
    typer.echo(issue_storage_token(uid, document_id, provider, ttl_seconds=ttl))


@app.command("serve")
def serve(
        host: str = typer.Option("127.0.0.1", help="Bind address"),
        port: int = typer.Option(8000, help="Bind port"),
):
    """Run the gateway under uvicorn using STORAGE_* settings."""
    import uvicorn

    from blobgate.api.fastapi import create_app
    from blobgate.app.core.logging import setup_logging

    setup_logging()
    uvicorn.run(create_app(), host=host, port=port, log_config=None)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
