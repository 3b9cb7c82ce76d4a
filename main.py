"""Medical Video Search

Simple CLI for running one video search.
"""

import argparse
import asyncio

from medsearch.services.video_search import search_videos


async def run_search(query: str, probe_links: bool = True, enrich: bool = False):
    """Run a video search for the given topic."""
    print(f"Search query: {query}")
    print("-" * 50)

    videos: list[dict] = []
    link_status: dict[str, str] = {}

    async for event in search_videos(query, probe_links=probe_links, enrich=enrich):
        event_type = event.event.value
        data = event.data

        if event_type == "videos_updated":
            videos = data.get("videos", [])
            print(f"\r[~] {len(videos)} video(s) so far", end="", flush=True)

        elif event_type == "no_results":
            print("\n[!] No verified medical videos found. Try more general medical terms.")

        elif event_type == "search_complete":
            print(f"\n[*] Stream complete in {data.get('runtime_ms')}ms")

        elif event_type == "link_checked":
            link_status[data["video_id"]] = data["status"]

        elif event_type == "enrichment_completed":
            print(f"  [+] enrichment for {data.get('video_id')}: {data.get('citations_count')} citation(s)")

        elif event_type == "error":
            print(f"\n[!] Error: {data.get('message', 'Unknown error')}")
            return

    for i, video in enumerate(videos, 1):
        status = link_status.get(video["video_id"], "unknown")
        print(f"\n{i}. {video['title']}")
        print(f"   Channel: {video['channel']}")
        print(f"   {video['url']}  [{status}]")
        if video.get("description"):
            print(f"   {video['description']}")
        for n, citation in enumerate(video.get("citations", []), 1):
            print(f"     [{n}] {citation}")


def main():
    parser = argparse.ArgumentParser(description="Medical Video Search")
    parser.add_argument("--query", "-q", required=True, help="Medical topic to search for")
    parser.add_argument("--no-probe", action="store_true", help="Skip the thumbnail link check")
    parser.add_argument("--enrich", action="store_true", help="Fetch citations per video in a second pass")

    args = parser.parse_args()

    asyncio.run(run_search(args.query, probe_links=not args.no_probe, enrich=args.enrich))


if __name__ == "__main__":
    main()
