"""
AWS Lambda handler for payment platform sale webhooks (API Gateway proxy).

Thin orchestration layer that delegates to SaleProcessor.
Policy: delivery failures still return 200 so the platform does not
redeliver the webhook and trigger a duplicate audit.
"""

import json
import logging
import os
import time
from typing import Dict, Any, Optional

from config import ConfigurationError, Settings
from domain.sale_processor import SaleProcessor
from services import responses as response_service

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Built on first invocation and reused while the container stays warm
_processor: Optional[SaleProcessor] = None


def get_processor() -> SaleProcessor:
    """
    Return the shared SaleProcessor, building it from the environment.

    Raises:
        ConfigurationError: If required API keys are missing
    """
    global _processor
    if _processor is None:
        _processor = SaleProcessor.from_settings(Settings.from_env())
    return _processor


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Process a sale webhook.

    Args:
        event: API Gateway proxy event (form-encoded POST body)
        context: Lambda context

    Returns:
        API Gateway proxy response with a JSON body
    """
    start_time = time.time()

    logger.info("=" * 70)
    logger.info("Sale Audit Webhook - Started")
    logger.info("=" * 70)

    try:
        processor = get_processor()
        response = processor.process(event, start_time=start_time)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return response_service.error_response(500, 'Internal server error', str(e))

    except Exception as e:
        logger.error(f"Unhandled error processing webhook: {e}", exc_info=True)
        return response_service.error_response(500, 'Internal server error', str(e))

    if response['statusCode'] == 200:
        logger.info(f"✓ Webhook handled in {int((time.time() - start_time) * 1000)}ms")
    else:
        logger.warning(f"⚠ Webhook rejected with status {response['statusCode']}")

    return response


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.

    Reports whether API keys are configured without calling any upstream.
    """
    return {
        'statusCode': 200,
        'body': json.dumps({
            'status': 'healthy',
            'environment': os.environ.get('ENVIRONMENT', 'dev'),
            'completionConfigured': bool(os.environ.get('GROQ_API_KEY')),
            'emailConfigured': bool(os.environ.get('RESEND_API_KEY'))
        })
    }
