import json
import boto3
import os
import logging

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
lambda_client = boto3.client('lambda')

# GET never reaches the upstream APIs, so the smoke test sends no email
SMOKE_TEST_EVENT = {
    'httpMethod': 'GET',
    'path': '/webhook/sale',
    'body': None,
    'isBase64Encoded': False
}


def validate_smoke_response(response, response_payload):
    """
    Check the new version answered the smoke event with the 405 contract.

    Raises:
        Exception: If the invocation failed or the response is not a JSON 405
    """
    if response.get('FunctionError'):
        raise Exception(f"Function returned error: {response_payload}")

    if response.get('StatusCode') != 200:
        raise Exception(f"Unexpected status code: {response.get('StatusCode')}")

    # 500 here usually means GROQ_API_KEY / RESEND_API_KEY are not configured
    if response_payload.get('statusCode') != 405:
        raise Exception(f"Invalid response status: {response_payload.get('statusCode')}")

    body = json.loads(response_payload.get('body') or '{}')
    if 'error' not in body:
        raise Exception(f"Response body missing error field: {body}")


def lambda_handler(event, context):
    """
    Pre-traffic hook for CodeDeploy.
    Runs validation tests before shifting traffic to new version.
    """
    logger.info(f"Pre-traffic hook triggered: {json.dumps(event)}")

    deployment_id = event['DeploymentId']
    lifecycle_event_hook_execution_id = event['LifecycleEventHookExecutionId']

    try:
        target_function = os.environ.get('TARGET_FUNCTION')

        logger.info(f"Running smoke tests on {target_function}")

        response = lambda_client.invoke(
            FunctionName=target_function,
            InvocationType='RequestResponse',
            Payload=json.dumps(SMOKE_TEST_EVENT)
        )

        response_payload = json.loads(response['Payload'].read())
        logger.info(f"Test response: {json.dumps(response_payload)}")

        validate_smoke_response(response, response_payload)

        logger.info("Pre-traffic validation passed")

        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Succeeded'
        )

        return {
            'statusCode': 200,
            'body': json.dumps('Pre-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Pre-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will prevent deployment
        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Failed'
        )

        return {
            'statusCode': 500,
            'body': json.dumps(f'Pre-traffic validation failed: {str(e)}')
        }
