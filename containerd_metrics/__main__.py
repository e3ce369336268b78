from containerd_metrics.cli import app

app()
