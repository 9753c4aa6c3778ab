"""
Tests for Job Decomposer Module

Tests for production_manifest/jobs/decomposer.py
"""

import pytest

from production_manifest.core.constants import JobType
from production_manifest.graph.job_graph import JobGraph, find_graph_violations
from production_manifest.jobs.decomposer import (
    build_image_prompt,
    decompose_jobs,
    image_model_for,
    music_mood_for,
    resolution_for,
)
from production_manifest.models.manifest import ProductionManifest


def _by_type(jobs, job_type):
    return [job for job in jobs if job["type"] == job_type.value]


class TestDecomposeJobs:
    """Tests for decompose_jobs."""

    def test_graph_completeness(self, valid_manifest):
        """Test N TTS jobs, M image jobs and one render job over all of them."""
        jobs = decompose_jobs(valid_manifest)
        tts = _by_type(jobs, JobType.TTS)
        images = _by_type(jobs, JobType.GENERATE_IMAGE)
        renders = _by_type(jobs, JobType.RENDER)

        assert len(tts) == 2
        assert len(images) == 2
        assert len(renders) == 1
        assert set(renders[0]["dependsOn"]) >= {job["id"] for job in tts + images}
        assert jobs[-1] is renders[0]

    def test_job_ids_and_priorities(self, valid_manifest):
        """Test id conventions, priorities and retry policies."""
        jobs = {job["id"]: job for job in decompose_jobs(valid_manifest)}

        assert set(jobs) == {"job_tts_s1", "job_tts_s2", "job_gen_gen_s1_visual",
                             "job_gen_gen_s2_visual", "job_render"}
        assert jobs["job_tts_s1"]["priority"] == 10
        assert jobs["job_render"]["priority"] == 12
        assert jobs["job_tts_s1"]["retryPolicy"] == {"maxRetries": 3, "backoffSeconds": 30}
        assert jobs["job_render"]["retryPolicy"] == {"maxRetries": 3, "backoffSeconds": 120}

    def test_content_jobs_have_no_dependencies(self, valid_manifest):
        """Test TTS and image jobs are independent."""
        for job in decompose_jobs(valid_manifest):
            if job["type"] != JobType.RENDER.value:
                assert job["dependsOn"] == []

    def test_tts_payload(self, valid_manifest):
        """Test TTS payload fields."""
        job = decompose_jobs(valid_manifest)[0]

        assert job["payload"]["sceneId"] == "s1"
        assert job["payload"]["text"] == "Welcome to the show."
        assert job["payload"]["voiceId"] == "eva"
        assert job["payload"]["sampleRate"] == 22050

    def test_image_payload(self, valid_manifest):
        """Test image payload fields."""
        image = _by_type(decompose_jobs(valid_manifest), JobType.GENERATE_IMAGE)[0]
        payload = image["payload"]

        assert payload["resultAssetId"] == "gen_s1_visual"
        assert payload["resolution"] == "1920x1080"
        assert payload["model"] == "falai-image-v1"
        assert payload["prompt"].startswith("bright studio")

    def test_render_payload(self, valid_manifest):
        """Test the render spec and callback URL."""
        render = decompose_jobs(valid_manifest, callback_url="https://cb.test")[-1]
        spec = render["payload"]["renderSpec"]

        assert render["payload"]["callbackUrl"] == "https://cb.test"
        assert render["payload"]["manifestId"] == "manifest_test000001"
        assert spec["durationSeconds"] == 30
        assert [entry["sceneId"] for entry in spec["timeline"]] == ["s1", "s2"]
        assert spec["timeline"][1]["assetIds"] == ["gen_s2_visual"]

    def test_silent_scene_has_no_tts(self, make_manifest):
        """Test scenes without narration produce no TTS job."""
        manifest = make_manifest()
        manifest["scenes"][1]["narration"] = "   "

        jobs = decompose_jobs(manifest)

        assert [job["id"] for job in _by_type(jobs, JobType.TTS)] == ["job_tts_s1"]

    def test_non_generated_visual_has_no_image_job(self, make_manifest):
        """Test user and stock visuals are not generated."""
        manifest = make_manifest()
        manifest["scenes"][0]["visuals"][0]["source"] = "user"

        jobs = decompose_jobs(manifest)

        assert len(_by_type(jobs, JobType.GENERATE_IMAGE)) == 1

    def test_shared_asset_gets_unique_job_ids(self, make_manifest):
        """Test two references to one asset yield distinct job ids."""
        manifest = make_manifest()
        manifest["scenes"][1]["visuals"][0]["assetId"] = "gen_s1_visual"

        jobs = decompose_jobs(manifest)
        ids = [job["id"] for job in jobs]

        assert "job_gen_gen_s1_visual_2" in ids
        assert len(ids) == len(set(ids))
        assert find_graph_violations(jobs) == []

    def test_music_job_per_cue(self, make_manifest):
        """Test each music cue becomes a job the render waits for."""
        manifest = make_manifest()
        manifest["audio"]["music"]["cueMap"] = {
            "music_01": {"description": "upbeat outro", "sceneIds": ["s2", "s9"]},
        }

        jobs = {job["id"]: job for job in decompose_jobs(manifest)}
        music = jobs["job_music_music_01"]

        assert music["type"] == "generate_music"
        assert music["priority"] == 5
        assert music["dependsOn"] == []
        assert music["retryPolicy"] == {"maxRetries": 2, "backoffSeconds": 60}
        assert music["payload"]["sceneIds"] == ["s2"]
        assert music["payload"]["durationSec"] == 20.0
        assert music["payload"]["mood"] == "neutral_learning"
        assert "job_music_music_01" in jobs["job_render"]["dependsOn"]
        assert find_graph_violations(list(jobs.values())) == []

    def test_music_cue_as_text(self, make_manifest):
        """Test a plain-text cue without scenes spans the whole video."""
        manifest = make_manifest()
        manifest["audio"]["music"]["cueMap"] = {"bed": "calm piano"}

        music = _by_type(decompose_jobs(manifest), JobType.GENERATE_MUSIC)[0]

        assert music["payload"]["description"] == "calm piano"
        assert music["payload"]["sceneIds"] == []
        assert music["payload"]["durationSec"] == 30.0

    def test_lip_sync_for_narrated_user_visual(self, make_manifest):
        """Test a narrated scene showing user footage is lip-synced after its TTS."""
        manifest = make_manifest()
        manifest["scenes"][0]["visuals"][0]["source"] = "user"

        jobs = {job["id"]: job for job in decompose_jobs(manifest)}
        lip_sync = jobs["job_lipsync_s1"]

        assert lip_sync["type"] == "lip_sync"
        assert lip_sync["priority"] == 8
        assert lip_sync["dependsOn"] == ["job_tts_s1"]
        assert lip_sync["retryPolicy"] == {"maxRetries": 2, "backoffSeconds": 90}
        assert lip_sync["payload"]["audioJobId"] == "job_tts_s1"
        assert "job_lipsync_s1" in jobs["job_render"]["dependsOn"]
        assert find_graph_violations(list(jobs.values())) == []

    def test_no_lip_sync_without_narration(self, make_manifest):
        """Test a silent scene with user footage has nothing to sync."""
        manifest = make_manifest()
        manifest["scenes"][0]["visuals"][0]["source"] = "user"
        manifest["scenes"][0]["narration"] = ""

        jobs = decompose_jobs(manifest)

        assert _by_type(jobs, JobType.LIP_SYNC) == []

    def test_lip_sync_runs_after_tts(self, make_manifest):
        """Test the lip-sync job lands in a later batch than its audio."""
        manifest = make_manifest()
        manifest["scenes"][0]["visuals"][0]["source"] = "user"

        batches = JobGraph(decompose_jobs(manifest)).execution_batches()

        assert "job_tts_s1" in batches[0]
        assert batches[1] == ["job_lipsync_s1"]
        assert batches[-1] == ["job_render"]

    def test_render_only_for_empty_scenes(self):
        """Test an empty manifest still yields a render job."""
        jobs = decompose_jobs({"scenes": []})

        assert len(jobs) == 1
        assert jobs[0]["id"] == "job_render"
        assert jobs[0]["dependsOn"] == []

    def test_accepts_production_manifest(self, valid_manifest):
        """Test the validated model is accepted too."""
        model = ProductionManifest.from_dict(valid_manifest)

        assert [job["id"] for job in decompose_jobs(model)] == \
            [job["id"] for job in decompose_jobs(valid_manifest)]

    def test_deterministic(self, valid_manifest):
        """Test the same manifest always yields the same jobs."""
        assert decompose_jobs(valid_manifest) == decompose_jobs(valid_manifest)

    def test_result_is_a_dag(self, valid_manifest):
        """Test the output loads into a JobGraph."""
        graph = JobGraph(decompose_jobs(valid_manifest))

        assert graph.execution_batches()[-1] == ["job_render"]


class TestDecomposerHelpers:
    """Tests for prompt and model helpers."""

    def test_resolution_for(self):
        """Test known and unknown aspect ratios."""
        assert resolution_for("9:16") == "1080x1920"
        assert resolution_for("Smart Auto") == "1920x1080"

    def test_image_model_for(self):
        """Test anime profile and flag."""
        assert image_model_for("anime_mode") == "falai-anime-v1"
        assert image_model_for("educational_explainer", anime_mode=True) == "falai-anime-v1"
        assert image_model_for("educational_explainer") == "falai-image-v1"

    def test_build_image_prompt(self):
        """Test style suffixes are appended."""
        prompt = build_image_prompt("A laptop on a desk.", "cinematic_story", "calm", "9:16")

        assert prompt == ("A laptop on a desk, cinematic lighting, dramatic composition, film grain, "
                          "soft, serene, 9:16 aspect ratio, high resolution")

    def test_music_mood_for(self):
        """Test profile moods win over tone moods."""
        assert music_mood_for("anime_mode", "professional") == "energetic_upbeat"
        assert music_mood_for("cinematic_story", "professional") == "corporate_inspiring"
        assert music_mood_for("cinematic_story", "calm") == "neutral_learning"
