import argparse
import asyncio
import json
from string import Template

import aiohttp
import requests


'''
    Default configuration values.
    These can be modified as needed.
'''

defaults = {
    "faction_id": 35840,                   #Faction whose members and crimes are polled.
    "comment": "AutoTurtle",               #Shown in the key owner's API access log, identifies this tool.
    "timeout": 30,                         #Seconds before a request is abandoned.
    "headers": {
        "accept": "application/json",
        "user-agent": "ocstalker",
    },
}

'''
Torn API v2 endpoints used by the stalker. The keys are used to identify the endpoint when calling fetch_endpoint().
Both are GET requests; the API key travels in the query string.
'''
endpoints = {
    "members":
                    {
                    "endpoint": "https://api.torn.com/v2/faction/$faction_id/members?striptags=true&comment=$comment&key=$key",
                    "method": "GET",
                    "result_key": "members",
                    },
    "crimes":
                    {
                    "endpoint": "https://api.torn.com/v2/faction/crimes?offset=0&sort=DESC&comment=$comment&key=$key",
                    "method": "GET",
                    "result_key": "crimes",
                    },
}


class TornApiError(Exception):
    """Raised when the Torn API cannot be reached or answers with an error."""

    def __init__(self, message, code=None, endpoint_name=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.endpoint_name = endpoint_name


## <------------------------------------- URL and payload helpers -------------------------------------> ##

def build_url(endpoint_name, api_key, faction_id=defaults["faction_id"], comment=defaults["comment"]):
    '''
    Builds the request URL for a named endpoint.

    :param endpoint_name: Key in the endpoints dictionary.
    :param api_key: Torn API key with faction access.
    '''
    if not endpoint_name or endpoint_name not in endpoints:
        raise TornApiError(
            f"Invalid or missing endpoint. Valid endpoints are: {list(endpoints.keys())}",
            code=400,
            endpoint_name=endpoint_name,
        )
    if not api_key:
        raise TornApiError("No Torn API key configured.", endpoint_name=endpoint_name)
    return Template(endpoints[endpoint_name]["endpoint"]).substitute(
        faction_id=faction_id, comment=comment, key=api_key
    )


def parse_payload(endpoint_name, status_code, payload):
    '''
    Validates a decoded response and returns the list the endpoint is about
    (members or crimes). Torn reports most failures with HTTP 200 and an
    "error" object in the body, so both are checked.
    '''
    if status_code != 200:
        raise TornApiError(f"HTTP {status_code} from '{endpoint_name}'", code=status_code, endpoint_name=endpoint_name)
    if not isinstance(payload, dict):
        raise TornApiError(f"Unexpected payload from '{endpoint_name}'", endpoint_name=endpoint_name)
    error = payload.get("error")
    if error:
        raise TornApiError(
            error.get("error", "Unknown API error") if isinstance(error, dict) else str(error),
            code=error.get("code") if isinstance(error, dict) else None,
            endpoint_name=endpoint_name,
        )
    return payload.get(endpoints[endpoint_name]["result_key"]) or []


## <------------------------------------- Synchronous endpoint handler -------------------------------------> ##

def fetch_endpoint(endpoint_name, api_key, faction_id=defaults["faction_id"], comment=defaults["comment"], headers=defaults["headers"], timeout=defaults["timeout"]):
    '''
    Fetches one endpoint with requests and returns its result list.
    Handy for poking at the API from the command line; the polling run uses fetch_faction_data().
    '''
    url = build_url(endpoint_name, api_key, faction_id=faction_id, comment=comment)
    try:
        response = requests.request(endpoints[endpoint_name]["method"], url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise TornApiError(f"Request to '{endpoint_name}' failed: {e}", endpoint_name=endpoint_name) from e
    try:
        payload = response.json()
    except ValueError as e:
        raise TornApiError(f"Invalid JSON from '{endpoint_name}'", code=response.status_code, endpoint_name=endpoint_name) from e
    return parse_payload(endpoint_name, response.status_code, payload)


## <------------------------------------- Concurrent roster reads -------------------------------------> ##

async def _fetch_json(session: aiohttp.ClientSession, endpoint_name: str, url: str):
    try:
        async with session.get(url) as response:
            try:
                payload = await response.json(content_type=None)
            except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                raise TornApiError(f"Invalid JSON from '{endpoint_name}'", code=response.status, endpoint_name=endpoint_name) from e
            return parse_payload(endpoint_name, response.status, payload)
    except aiohttp.ClientError as e:
        raise TornApiError(f"Request to '{endpoint_name}' failed: {e}", endpoint_name=endpoint_name) from e
    except asyncio.TimeoutError as e:
        raise TornApiError(f"Request to '{endpoint_name}' timed out", endpoint_name=endpoint_name) from e


async def fetch_faction_data(api_key, faction_id=defaults["faction_id"], comment=defaults["comment"], headers=defaults["headers"], timeout=defaults["timeout"]):
    '''
    Fetches the member roster and the crime list together. They do not depend
    on each other, so both requests are in flight at once.

    :return: {"members": [...], "crimes": [...]}
    '''
    members_url = build_url("members", api_key, faction_id=faction_id, comment=comment)
    crimes_url = build_url("crimes", api_key, faction_id=faction_id, comment=comment)
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with aiohttp.ClientSession(headers=headers, timeout=client_timeout) as session:
        tasks = [
            asyncio.ensure_future(_fetch_json(session, "members", members_url)),
            asyncio.ensure_future(_fetch_json(session, "crimes", crimes_url)),
        ]
        try:
            members, crimes = await asyncio.gather(*tasks)
        except BaseException:
            # Stop the other request before the session closes under it.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
    return {"members": members, "crimes": crimes}


## <------------------------------------- Arg parsing for CLI use -------------------------------------> ##

def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Torn faction API CLI for fetching raw endpoints.")
    parser.add_argument("endpoint", choices=list(endpoints.keys()), help="Endpoint to fetch")
    parser.add_argument("-k", "--key", type=str, required=True, help="Torn API key")
    parser.add_argument("-f", "--faction-id", type=int, default=defaults["faction_id"], help="Faction ID")
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    try:
        result = fetch_endpoint(args.endpoint, args.key, faction_id=args.faction_id)
    except TornApiError as e:
        print(f" ! Failed to fetch '{args.endpoint}': {e.message} (code: {e.code})")
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
