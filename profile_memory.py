from memory_profiler import profile
from guestdesk.main import app
from fastapi.testclient import TestClient

# Create a test client for the FastAPI app
client = TestClient(app)


@profile
def run_scenario():
    """
    Simple scenario to exercise the public endpoints while tracking memory.
    Nothing is asserted here, it's only for profiling.
    """
    client.get("/health")
    client.get("/api/guests/verify-hotel/1")
    client.get("/api/food/menu/1")
    client.get("/api/complaints/predefined/1")
    client.get("/api/guests/status/1")


if __name__ == "__main__":
    run_scenario()
