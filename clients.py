import contextlib
import logging
from typing import NamedTuple

import google.auth
from google.cloud import bigquery
from google.cloud import spanner_admin_database_v1
from google.cloud import translate_v3

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class ServiceClients(NamedTuple):
    """Long-lived handles shared by every request."""

    spanner_admin: spanner_admin_database_v1.DatabaseAdminClient
    bigquery: bigquery.Client
    translate_grpc: translate_v3.TranslationServiceClient
    translate_rest: translate_v3.TranslationServiceClient


def _close_gapic(client) -> None:
    client.transport.close()


@contextlib.contextmanager
def open_clients(project_id: str):
    """Build the four service clients and close them on exit.

    Construction errors propagate to the caller. Whatever was built before
    the failure is still released, newest first.
    """
    credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])

    with contextlib.ExitStack() as stack:
        # spanner admin, gRPC
        spanner_admin = spanner_admin_database_v1.DatabaseAdminClient(credentials=credentials)
        stack.callback(_close_gapic, spanner_admin)
        logger.info("Spanner admin gRPC client ready")

        # bigquery, HTTP
        bq = bigquery.Client(project=project_id, credentials=credentials)
        stack.callback(bq.close)
        logger.info("BigQuery HTTP client ready (project=%s)", project_id)

        # translate over gRPC
        translate_grpc = translate_v3.TranslationServiceClient(
            credentials=credentials, transport="grpc"
        )
        stack.callback(_close_gapic, translate_grpc)
        logger.info("Translate gRPC client ready")

        # translate over REST
        translate_rest = translate_v3.TranslationServiceClient(
            credentials=credentials, transport="rest"
        )
        stack.callback(_close_gapic, translate_rest)
        logger.info("Translate REST client ready")

        yield ServiceClients(
            spanner_admin=spanner_admin,
            bigquery=bq,
            translate_grpc=translate_grpc,
            translate_rest=translate_rest,
        )
        logger.info("Releasing service clients")
