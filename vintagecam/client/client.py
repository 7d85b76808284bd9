"""HTTP client for the vintagecam web API."""

import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import requests

from vintagecam import __version__
from vintagecam.client.exceptions import (
    ClientAPIError,
    ClientCapacityError,
    ClientError,
    ClientNotFoundError,
)

logger = logging.getLogger(__name__)

# Python keyword arguments accepted by process calls, mapped to request fields
OPTION_FIELDS = {
    "aspect_ratio": "aspectRatio",
    "film_stock": "filmStock",
    "add_grain": "addGrain",
    "grain_intensity": "grainIntensity",
    "grain_size": "grainSize",
    "add_vignette": "addVignette",
    "vignette_intensity": "vignetteIntensity",
}


class VintageCamClient:
    """Client for a running vintagecam server.

    Attributes:
        base_url: Server root URL (e.g. http://localhost:5000)
        timeout: Request timeout in seconds
        session: Underlying requests session
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 60,
        session: Optional[requests.Session] = None
    ) -> None:
        """Initialize client.

        Args:
            base_url: Server root URL
            timeout: Request timeout in seconds
            session: Optional requests session to reuse
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": f"vintagecam-client/{__version__}",
        })
        logger.debug(f"vintagecam client initialized for {self.base_url}")

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        return f"{self.base_url}{endpoint}"

    def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        stream: bool = False
    ) -> requests.Response:
        """Make a request to the vintagecam API.

        Args:
            method: HTTP method
            endpoint: API path (e.g. /api/upload)
            json_data: JSON body
            files: Multipart files
            stream: Stream the response body

        Returns:
            Successful response

        Raises:
            ClientNotFoundError: If the resource is not found (404)
            ClientCapacityError: If the server is overloaded (503)
            ClientAPIError: For any other non-2xx status
            ClientError: If the request could not be made
        """
        url = self._url(endpoint)
        logger.debug(f"vintagecam API {method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json_data,
                files=files,
                stream=stream,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise ClientError(
                f"Request timeout after {self.timeout} seconds: {endpoint}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise ClientError(f"Request failed: {e}") from e

        logger.debug(f"  Response: {response.status_code}")

        if response.ok:
            return response

        body = _error_body(response)
        message = body.get("error") or f"API request failed with status {response.status_code}"

        if response.status_code == 404:
            raise ClientNotFoundError(message, status_code=404, response=body)
        if response.status_code == 503:
            retry_after = body.get("retryAfter") or response.headers.get("Retry-After")
            raise ClientCapacityError(
                message,
                retry_after=int(retry_after) if retry_after else None,
                response=body
            )
        raise ClientAPIError(message, status_code=response.status_code, response=body)

    def upload_image(self, path: Union[str, Path]) -> str:
        """Upload a JPEG or PNG file.

        Args:
            path: Local image path

        Returns:
            Upload id

        Raises:
            ClientError: If the file cannot be read or the upload fails
        """
        path = Path(path)
        if not path.is_file():
            raise ClientError(f"File not found: {path}")

        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with open(path, "rb") as f:
            response = self._request(
                "POST", "/api/upload", files={"image": (path.name, f, mime_type)}
            )

        image_id = response.json()["id"]
        logger.info(f"Uploaded {path.name} as {image_id}")
        return image_id

    def process_image(self, image_id: str, **options: Any) -> str:
        """Process an upload with a centered aspect-ratio crop.

        Args:
            image_id: Upload id
            **options: aspect_ratio, film_stock, add_grain, grain_intensity,
                grain_size, add_vignette, vignette_intensity

        Returns:
            Processed image id
        """
        body = {"imageId": image_id, **_option_fields(options)}
        response = self._request("POST", "/api/process", json_data=body)
        return response.json()["id"]

    def process_custom_crop(
        self,
        image_id: str,
        crop: Mapping[str, int],
        **options: Any
    ) -> str:
        """Process an upload with an explicit crop rectangle.

        Args:
            image_id: Upload id
            crop: Mapping with x, y, width and height
            **options: Same keyword options as process_image

        Returns:
            Processed image id
        """
        body = {"imageId": image_id, "cropData": dict(crop), **_option_fields(options)}
        response = self._request("POST", "/api/process/custom", json_data=body)
        return response.json()["id"]

    def get_download_url(self, processed_id: str) -> str:
        return self._url(f"/api/download/{processed_id}")

    def get_view_url(self, processed_id: str) -> str:
        return self._url(f"/api/download/view/{processed_id}")

    def download_image(
        self,
        processed_id: str,
        destination: Union[str, Path]
    ) -> Path:
        """Download a processed image.

        Args:
            processed_id: Processed image id
            destination: Target file, or a directory to save into using the
                server-provided filename

        Returns:
            Path to the downloaded file
        """
        response = self._request("GET", f"/api/download/{processed_id}", stream=True)

        dest_path = Path(destination)
        if dest_path.is_dir():
            dest_path = dest_path / _attachment_name(response, processed_id)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        with open(dest_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=65536):
                if chunk:
                    f.write(chunk)

        logger.info(f"Downloaded {processed_id} to {dest_path}")
        return dest_path

    def storage_status(self) -> Dict[str, Any]:
        return self._request("GET", "/api/storage-status").json()

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health").json()


def _option_fields(options: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(options) - set(OPTION_FIELDS)
    if unknown:
        raise TypeError(f"Unknown processing options: {', '.join(sorted(unknown))}")
    return {
        OPTION_FIELDS[name]: value
        for name, value in options.items()
        if value is not None
    }


def _error_body(response: requests.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _attachment_name(response: requests.Response, processed_id: str) -> str:
    disposition = response.headers.get("Content-Disposition", "")
    for part in disposition.split(";"):
        part = part.strip()
        if part.startswith("filename="):
            return part[len("filename="):].strip('"')
    return f"vintagecam-{processed_id}"
