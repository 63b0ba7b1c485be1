import numpy as np

from ffnet import Activation, DenseLayer, GDOptimizer, MeanSquaredErrorLoss, Model
from ffnet.helpers.logger import RunLogger


def generate_xor_data(n):
    combos = np.array([list(map(int, format(i, f'0{n}b'))) for i in range(2**n)])
    parity = np.sum(combos, axis=1) % 2  # odd parity = 1
    Y = np.zeros((combos.shape[0], 2))
    Y[np.arange(combos.shape[0]), parity] = 1.0  # one-hot (even, odd)
    return combos.astype(np.float64), Y


def build_model(n_input, n_hidden, seed):
    model = Model(name=f"xor{n_input}", seed=seed)
    hidden = DenseLayer(model, "hidden", Activation.RELU, output_size=n_hidden, input_size=n_input)
    output = DenseLayer(model, "output", Activation.LINEAR, output_size=2, input_size=n_hidden)
    loss = MeanSquaredErrorLoss(model, "loss", input_size=2)
    model.connect(hidden, output)
    model.connect(output, loss)
    model.init()
    return model, output


def test(n, n_hidden, lr, epochs, seed=0, log=False):
    X, Y = generate_xor_data(n)

    model, output = build_model(n, n_hidden, seed)
    logger = RunLogger(tag=f"xor{n}") if log else None

    history = model.fit(X, Y, GDOptimizer(lr), epochs=epochs, batch_size=1, logger=logger)
    if logger is not None:
        logger.plot_all(history, tag=f"xor{n}")

    preds = np.array([np.argmax(model.predict(x, output)) for x in X])

    print(f"Predicting XOR for {n} inputs:")
    print(f"XOR-{n} Predictions:", preds)
    print(f"Accuracy: {np.mean(preds == np.argmax(Y, axis=1)) * 100:.2f}%")

if __name__ == "__main__":
    # Example usage
    test(n=2, n_hidden=8, lr=0.05, epochs=500)
    test(n=3, n_hidden=16, lr=0.05, epochs=1_000)
    test(n=4, n_hidden=32, lr=0.02, epochs=2_000, log=True)
