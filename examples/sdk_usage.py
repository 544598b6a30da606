"""
Example Usage of the ComfyUI Client SDK

Demonstrates how to:
- Point the client node at a router and a rollup sequencer
- Submit an image job
- Track job events
- Download the generated images
"""

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

from comfyui_client.models import ImageJobParameters
from sdk import ComfyUIClientSDK

ROUTER_PROCESS = "router:provider_dao_router:publisher.os"
SEQUENCER_ADDRESS = "sequencer.os@sequencer:provider-dao-rollup:publisher.os"


def example_1_configure():
    """Example 1: Configure the router process and rollup sequencer"""
    print("\n=== Example 1: Configure ===\n")

    sdk = ComfyUIClientSDK()
    sdk.set_router_process(ROUTER_PROCESS)
    result = sdk.set_rollup_sequencer(SEQUENCER_ADDRESS)

    routers = result['state']['on_chain_state']['routers']
    print(f"✓ Configured; routers on chain: {routers}")


def example_2_run_job():
    """Example 2: Submit a job and wait for the final image"""
    print("\n=== Example 2: Run Job ===\n")

    sdk = ComfyUIClientSDK()
    params = ImageJobParameters(
        workflow="basic",
        quality="fast",
        aspect_ratio="square",
        user_id="0",
        positive_prompt="a lighthouse on a cliff at dusk, oil painting",
        negative_prompt="blurry",
        cfg_scale={"min": 0, "max": 100},
        character={"id": "none"},
        styler={"id": "none"}
    )

    result = sdk.run_image_job(params)
    print(f"Submission {result['submission_id']}: {result['status']}")
    if result['status'] != 'queued':
        print(f"✗ Not queued: {result.get('error')}")
        return

    # Print events until the job completes
    sdk.track_jobs(job_id=result['job_id'], block=True, timeout=600)

    output_dir = Path("outputs")
    for image in sdk.list_images(result['job_id']):
        save_path = output_dir / image['filename']
        sdk.download_image(image['filename'], save_path=save_path)
        print(f"✓ Saved: {save_path}")


if __name__ == "__main__":
    example_1_configure()
    example_2_run_job()
