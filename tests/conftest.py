import pytest

from decalpak.packing.templates import load_templates
from decalpak.reporting import SilentReporter, set_reporter, set_verbosity

from image_helper import write_noise_image


@pytest.fixture(autouse=True)
def quiet_reporter():
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_reporter(SilentReporter())
    set_verbosity(0)


@pytest.fixture(scope="session")
def templates():
    return load_templates()


@pytest.fixture(scope="session")
def payload(templates):
    # Any bytes of the right length stand in for the compressed mip chain.
    return bytes(i % 251 for i in range(templates.payload_size))


@pytest.fixture(scope="session")
def source_1024(tmp_path_factory):
    return write_noise_image(tmp_path_factory.mktemp("src") / "decal.png", 1024)
