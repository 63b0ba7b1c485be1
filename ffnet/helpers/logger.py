# helpers/logger.py
import csv, json, datetime, pathlib
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt


class RunLogger:
    def __init__(self, root="runs", tag="run"):
        ts = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        self.root = pathlib.Path(root)
        self.dir = self.root / f"{tag}_{ts}"
        self.dir.mkdir(parents=True, exist_ok=True)
        self.csv_path = self.dir / "history.csv"
        self.json_path = self.dir / "history.json"
        self.metrics = []  # list of dicts per epoch
        self._csv_header_written = False

    # ---------- logging ----------
    def log_epoch(self, epoch, **kwargs):
        row = {"epoch": int(epoch), **{k: float(v) for k, v in kwargs.items()}}
        self.metrics.append(row)
        with open(self.csv_path, "a", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=list(row.keys()))
            if not self._csv_header_written:
                writer.writeheader()
                self._csv_header_written = True
            writer.writerow(row)

    def save_json(self):
        with open(self.json_path, "w") as f:
            json.dump(self.metrics, f, indent=2)
        return str(self.json_path)

    # ---------- plotting ----------
    def _plots_dir(self, subdir):
        out = self.dir / subdir
        out.mkdir(parents=True, exist_ok=True)
        return out

    def plot_loss(self, history, tag="run", subdir="plots"):
        """
        Saves loss curve as loss_curve_<tag>_epochs_<n>.png.
        history: {'loss': [...]} as returned by Model.fit()
        """
        train = history.get("loss", [])
        outdir = self._plots_dir(subdir)
        plt.figure()
        if len(train) > 0:
            plt.plot(train, label="train loss")
            plt.legend()
        plt.xlabel("Epoch")
        plt.ylabel("Loss")
        plt.title(f"Loss vs Epochs ({tag})")
        plt.tight_layout()
        path = outdir / f"loss_curve_{tag}_epochs_{len(train)}.png"
        plt.savefig(path, dpi=160)
        plt.close()
        return path

    def plot_accuracy(self, history, tag="run", subdir="plots"):
        acc = history.get("acc", [])
        if len(acc) == 0:
            return None
        outdir = self._plots_dir(subdir)
        plt.figure()
        plt.plot(acc, label="train accuracy")
        plt.xlabel("Epoch")
        plt.ylabel("Accuracy")
        plt.title(f"Accuracy vs Epochs ({tag})")
        plt.legend()
        plt.tight_layout()
        path = outdir / f"accuracy_{tag}_epochs_{len(acc)}.png"
        plt.savefig(path, dpi=160)
        plt.close()
        return path

    def plot_all(self, history, tag="run", subdir="plots"):
        self.plot_loss(history, tag=tag, subdir=subdir)
        self.plot_accuracy(history, tag=tag, subdir=subdir)
