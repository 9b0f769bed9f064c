
from engine.config import Settings

def test_Settings():
    s = Settings()
    assert s.REGION_SIZE > 0 and s.REGION_STEP > 0
    assert s.SCAN_SCALES == (1.0, 0.8, 1.2)
    assert s.publish_interval == 0.1
    # override via env-like behavior (construct new instance)
    s2 = Settings(PUBLISH_INTERVAL_MS=250, MAX_FACES=0)
    assert s2.publish_interval == 0.25
    assert s2.MAX_FACES == 1

def test_Settings_scan_scales_normalized():
    assert Settings(SCAN_SCALES="1.0, junk, -2, 0.5").SCAN_SCALES == (1.0, 0.5)
    assert Settings(SCAN_SCALES="").SCAN_SCALES == (1.0, 0.8, 1.2)
    assert Settings(SCAN_SCALES=(1.2,)).SCAN_SCALES == (1.2,)
