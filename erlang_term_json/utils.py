from typing import Tuple, Union
from urllib.parse import urlparse

import boto3
from botocore.exceptions import ClientError

from erlang_term_json.source import StreamSource


def is_s3_url(url: str) -> bool:
    parsed_url = urlparse(url)
    if parsed_url.scheme == "s3":
        return True
    return False


def check_endpoint_url(url: str) -> str:
    parsed_url = urlparse(url)
    if parsed_url.path != "":
        raise ValueError(f"{url} is not a valid endpoint URL")
    return url


def parse_s3_url(path: str) -> Tuple[str, str]:
    parsed_url = urlparse(path)
    if parsed_url.scheme != "s3":
        raise ValueError(f"{path} is not a valid S3 URI")
    bucket = parsed_url.netloc
    key = parsed_url.path[1:]
    return bucket, key


def open_s3_source(s3_path: str, endpoint: Union[str, None] = None) -> StreamSource:
    s3_client = boto3.client("s3", endpoint_url=endpoint)
    bucket, key = parse_s3_url(s3_path)
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
    except ClientError as err:
        if err.response["Error"]["Code"] in ("NoSuchKey", "404"):
            raise ValueError(f"Could not open {s3_path}") from err
        raise err
    return StreamSource(response["Body"])
