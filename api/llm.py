"""
Azure OpenAI client used by the AI endpoints.

The model is asked to reply with a single JSON object; replies are cleaned of
markdown code fences before parsing.
"""
import json
import logging
import re

from django.conf import settings
from openai import AzureOpenAI

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = (
    'Azure OpenAI not configured. Please set AZURE_OPENAI_API_KEY and '
    'AZURE_OPENAI_ENDPOINT in the environment'
)
INVALID_JSON_MESSAGE = 'Invalid JSON response from Azure OpenAI'

SETUP_STEPS = [
    '1. Set up an Azure OpenAI resource in the Azure Portal',
    '2. Deploy a chat model (e.g. gpt-35-turbo)',
    '3. Set AZURE_OPENAI_API_KEY in the environment',
    '4. Set AZURE_OPENAI_ENDPOINT in the environment',
    '5. Optionally set AZURE_OPENAI_DEPLOYMENT_NAME and AZURE_OPENAI_API_VERSION',
]

CODE_FENCE = re.compile(r'```(?:json)?\s*')


class LLMError(Exception):
    """Base class for AI endpoint failures"""


class LLMNotConfigured(LLMError):
    def __init__(self, message=NOT_CONFIGURED_MESSAGE):
        super().__init__(message)


class LLMInvalidResponse(LLMError):
    def __init__(self, detail, raw=None):
        super().__init__(INVALID_JSON_MESSAGE)
        self.detail = detail
        self.raw = raw


def is_configured():
    return bool(settings.AZURE_OPENAI_API_KEY and settings.AZURE_OPENAI_ENDPOINT)


def get_client():
    if not is_configured():
        raise LLMNotConfigured()

    return AzureOpenAI(
        api_key=settings.AZURE_OPENAI_API_KEY,
        azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
        api_version=settings.AZURE_OPENAI_API_VERSION,
    )


def parse_json_reply(content, required_fields=()):
    """
    Parse a model reply into a dict.

    Raises:
        LLMInvalidResponse: empty reply, invalid JSON, not an object, or a
            required field is missing
    """
    if not content:
        raise LLMInvalidResponse('No response from Azure OpenAI')

    cleaned = CODE_FENCE.sub('', content.strip()).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMInvalidResponse(str(e), raw=content) from e

    if not isinstance(data, dict):
        raise LLMInvalidResponse('Expected a JSON object', raw=content)

    for field in required_fields:
        if field not in data:
            raise LLMInvalidResponse(f'Missing required field: {field}', raw=content)

    return data


def request_json_completion(system_prompt, user_prompt, temperature=0.3, max_tokens=1500,
                            top_p=0.95, required_fields=()):
    """
    Send a system + user prompt and return the parsed JSON reply.

    Raises:
        LLMNotConfigured: credentials are missing
        LLMInvalidResponse: the reply can't be used
        openai.OpenAIError: transport or API failures
    """
    client = get_client()
    deployment = settings.AZURE_OPENAI_DEPLOYMENT_NAME

    logger.info(f"Sending request to Azure OpenAI deployment {deployment}")
    completion = client.chat.completions.create(
        model=deployment,
        messages=[
            {'role': 'system', 'content': system_prompt},
            {'role': 'user', 'content': user_prompt},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
        top_p=top_p,
    )

    content = completion.choices[0].message.content if completion.choices else None
    try:
        return parse_json_reply(content, required_fields)
    except LLMInvalidResponse as e:
        logger.error(f"Unusable Azure OpenAI reply ({e.detail}): {content!r}")
        raise
