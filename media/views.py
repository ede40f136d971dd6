import json

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import render
from django.views.decorators.csrf import csrf_exempt

from media.service import config
from media.service.pipeline import process_request
from media.service.status import check_prerequisites

EXAMPLE_PAYLOAD = {
    'url': 'https://www.youtube.com/watch?v=dQw4w9WgXcQ',
    'name': 'custom_video_name',
    'start_time': 30,
    'end_time': 120,
}


def _base_url(request):
    """Public base URL the output folder is served under"""
    return config.get_public_base_url() or request.build_absolute_uri('/')


@csrf_exempt
def download_view(request):
    """
    Download API endpoint.

    GET renders the documentation and status page. POST takes a JSON body:
        url (required): Video URL
        name (optional): Custom base name for the output file
        start_time (optional): Segment start in seconds
        end_time (optional): Segment end in seconds

    Returns:
        JSON {url, filename} on success, {error} with a 4xx/5xx status otherwise
    """
    if request.method == 'GET':
        return status_page(request)

    if request.method != 'POST':
        return JsonResponse(
            {'error': 'Method not allowed. Use GET for documentation or POST with JSON body.'},
            status=405,
        )

    result = process_request(request.body, base_url=_base_url(request))
    return JsonResponse(result.as_response_data(), status=result.status)


def status_page(request):
    """Documentation page with prerequisite checks"""
    endpoint = request.build_absolute_uri(request.path)
    base_url = _base_url(request).rstrip('/')
    output_folder = config.get_output_folder()

    payload_json = json.dumps(EXAMPLE_PAYLOAD, indent=4)
    curl_command = (
        f"curl -X POST '{endpoint}' \\\n"
        '  -H "Content-Type: application/json" \\\n'
        f"  -d '{json.dumps(EXAMPLE_PAYLOAD)}'"
    )
    success_example = json.dumps(
        {
            'url': f'{base_url}/{output_folder}/output_filename.mp4',
            'filename': 'output_filename.mp4',
        },
        indent=4,
    )

    context = {
        'report': check_prerequisites(),
        'ytdlp_path': config.get_ytdlp_path(),
        'ffmpeg_path': config.get_ffmpeg_path(),
        'output_folder': output_folder,
        'endpoint': endpoint,
        'payload_json': payload_json,
        'success_example': success_example,
        'error_example': json.dumps(
            {'error': 'Error message from yt-dlp, ffmpeg, or script.'}, indent=4
        ),
        'curl_command': curl_command,
        'max_execution_time': settings.CLIPFETCH_MAX_EXECUTION_TIME,
    }
    return render(request, 'media/home.html', context)
